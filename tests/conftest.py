import pytest

from validator_list import keys
from validator_list.manifest import ManifestFields, generate_manifest

from fakes import RecordingSleep, fixed_entropy


@pytest.fixture
def master_key():
    return keys.generate(fixed_entropy(1))


@pytest.fixture
def ephemeral_key():
    return keys.generate(fixed_entropy(2))


@pytest.fixture
def validator_keys():
    return [keys.generate(fixed_entropy(10 + i)) for i in range(3)]


@pytest.fixture
def validator_manifests(validator_keys):
    """node public key -> manifest, each validator signing its own manifest."""
    manifests = {}
    for i, vk in enumerate(validator_keys):
        signing_key = keys.generate(fixed_entropy(20 + i))
        manifests[vk.node_public_key] = generate_manifest(ManifestFields(
            sequence=1,
            public_key=vk.node_public_key_hex,
            signing_public_key=signing_key.node_public_key_hex,
            signing_private_key=signing_key.secret_key,
            master_private_key=vk.secret_key,
        ))
    return manifests


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
