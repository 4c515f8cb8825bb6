import pytest

from validator_list import codec, keys
from validator_list.errors import DecodingError
from validator_list.keys import KeyPair

from fakes import fixed_entropy

# RFC 8032 section 7.1, test 1
RFC8032_SEED = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PUBLIC = "D75A980182B10AB7D54BFED3C964073A0EE172F3DAA62325AF021A68F707511A"


def test_generated_keypair_shape():
    for _ in range(5):
        kp = keys.generate()
        assert kp.key_type == "ed25519"
        assert kp.node_public_key_hex.startswith("ED")
        assert len(kp.node_public_key_hex) == 66
        assert kp.node_public_key_hex == kp.node_public_key_hex.upper()
        assert kp.node_public_key.startswith("n")
        assert len(codec.decode_secret_key(kp.secret_key)) == 32


def test_generated_keys_are_distinct():
    assert keys.generate().secret_key != keys.generate().secret_key


def test_generate_is_deterministic_for_entropy():
    assert keys.generate(fixed_entropy(9)) == keys.generate(fixed_entropy(9))


def test_from_seed_matches_rfc8032_vector():
    kp = KeyPair.from_seed(RFC8032_SEED)
    assert kp.node_public_key_hex == "ED" + RFC8032_PUBLIC
    assert codec.decode_secret_key(kp.secret_key) == RFC8032_SEED


def test_from_secret_key_rederives_pair():
    kp = keys.generate()
    assert KeyPair.from_secret_key(kp.secret_key) == kp


def test_from_der_strips_envelope():
    der = keys.DER_PRIVATE_KEY_PREFIX + RFC8032_SEED
    assert KeyPair.from_der(der) == KeyPair.from_seed(RFC8032_SEED)
    with pytest.raises(DecodingError):
        KeyPair.from_der(b"\x30\x00" + RFC8032_SEED)


def test_from_seed_rejects_wrong_length():
    with pytest.raises(DecodingError):
        KeyPair.from_seed(bytes(31))


def test_dict_roundtrip():
    kp = keys.generate()
    data = kp.to_dict()
    assert set(data) == {"key_type", "secret_key", "node_public_key", "node_public_key_hex"}
    assert KeyPair.from_dict(data) == kp


def test_from_dict_rejects_mismatched_public_key():
    kp = keys.generate(fixed_entropy(1))
    other = keys.generate(fixed_entropy(2))
    data = dict(kp.to_dict(), node_public_key_hex=other.node_public_key_hex)
    with pytest.raises(DecodingError):
        KeyPair.from_dict(data)
    with pytest.raises(DecodingError):
        KeyPair.from_dict({"node_public_key": kp.node_public_key})
