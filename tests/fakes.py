def fixed_entropy(value: int):
    return lambda n: bytes([value]) * n


class FakeManifestSource:
    """ManifestSource that serves queued errors first, then the manifest."""

    def __init__(self, manifests, errors=None):
        self.manifests = manifests
        self.errors = {pk: list(errs) for pk, errs in (errors or {}).items()}
        self.calls = []

    def fetch_manifest(self, public_key):
        self.calls.append(public_key)
        pending = self.errors.get(public_key)
        if pending:
            return {"error": pending.pop(0)}
        return {
            "manifest": self.manifests[public_key],
            "requested": public_key,
            "status": "success",
        }


class RecordingSleep:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)
