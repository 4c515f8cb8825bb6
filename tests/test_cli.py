import json
import os
import stat

import pytest

from validator_list import cli, codec, vl
from validator_list.keys import KeyPair

from fakes import FakeManifestSource


def test_keygen_writes_keys_file(tmp_path, capsys):
    path = tmp_path / "keys.json"
    cli.main(["keygen", "-o", str(path)])
    data = json.loads(path.read_text())
    master = KeyPair.from_dict(data["vk"])
    ephemeral = KeyPair.from_dict(data["sk"])
    assert master != ephemeral
    assert master.node_public_key_hex in capsys.readouterr().err

    with pytest.raises(SystemExit):
        cli.main(["keygen", "-o", str(path)])


def test_keygen_file_is_private(tmp_path):
    path = tmp_path / "keys.json"
    cli.main(["keygen", "-o", str(path)])
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    path.chmod(0o644)
    cli.main(["keygen", "-o", str(path), "--force"])
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_keygen_stdout(capsys):
    cli.main(["keygen"])
    data = json.loads(capsys.readouterr().out)
    assert set(data) == {"ts", "vk", "sk"}


def test_node_key_hex(master_key, capsys):
    cli.main(["node-key-hex", master_key.node_public_key])
    assert capsys.readouterr().out.strip() == master_key.node_public_key_hex


def test_node_key_hex_rejects_bad_key():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["node-key-hex", "nNOTAKEY"])
    assert "Error" in str(excinfo.value.code)


def _write_setup(tmp_path, master_key, ephemeral_key, validators):
    (tmp_path / "keys.json").write_text(
        json.dumps({"vk": master_key.to_dict(), "sk": ephemeral_key.to_dict()})
    )
    config = tmp_path / "config.json"
    config.write_text(json.dumps({
        "keys_file": "keys.json",
        "sequence": 7,
        "expiration": "2099-01-01",
        "validators": validators,
        "rpc_url": "http://localhost:5005/",
    }))
    return config


def test_create_and_decode(tmp_path, monkeypatch, capsys, master_key, ephemeral_key,
                           validator_keys, validator_manifests):
    validators = [k.node_public_key for k in validator_keys]
    config = _write_setup(tmp_path, master_key, ephemeral_key, validators)
    source = FakeManifestSource(validator_manifests)
    monkeypatch.setattr(cli, "RPCManifestSource", lambda client: source)

    output = tmp_path / "vl.json"
    cli.main(["create", str(config), "-o", str(output)])

    result = json.loads(output.read_text())
    assert result["public_key"] == master_key.node_public_key_hex
    assert vl.verify_vl(result)
    (blob,) = vl.decode_vl(result)
    assert blob["sequence"] == 7
    assert blob["expiration"] == vl.unix_to_ledger_time(vl.date_to_unix_time("2099-01-01"))
    assert source.calls == validators
    capsys.readouterr()

    cli.main(["decode", str(output)])
    out = capsys.readouterr().out
    assert "VL signature: valid" in out
    assert "Manifest signatures: valid" in out
    for key in validator_keys:
        assert codec.node_public_to_hex(key.node_public_key) in out


def test_decode_flags_invalid_signature(tmp_path, monkeypatch, master_key, ephemeral_key,
                                        validator_keys, validator_manifests):
    validators = [k.node_public_key for k in validator_keys]
    config = _write_setup(tmp_path, master_key, ephemeral_key, validators)
    monkeypatch.setattr(cli, "RPCManifestSource", lambda client: FakeManifestSource(validator_manifests))
    output = tmp_path / "vl.json"
    cli.main(["create", str(config), "-o", str(output)])

    result = json.loads(output.read_text())
    result["signature"] = "00" * 64
    output.write_text(json.dumps(result))
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["decode", str(output)])
    assert excinfo.value.code == 1


def test_create_rejects_past_expiration(tmp_path, master_key, ephemeral_key):
    config = _write_setup(tmp_path, master_key, ephemeral_key, [])
    data = json.loads(config.read_text())
    data["expiration"] = "2001-01-01"
    config.write_text(json.dumps(data))
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["create", str(config), "-o", str(tmp_path / "vl.json")])
    assert "in the past" in str(excinfo.value.code)


@pytest.mark.parametrize(
    "document",
    [
        {"blob": "e30=", "version": 1},
        {"manifest": "AAAA", "version": 1},
        ["not", "an", "object"],
    ],
)
def test_decode_reports_incomplete_vl(tmp_path, document):
    path = tmp_path / "vl.json"
    path.write_text(json.dumps(document))
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["decode", str(path)])
    assert str(excinfo.value.code).startswith("Error:")
