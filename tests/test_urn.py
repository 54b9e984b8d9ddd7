import base64

from brain_db.modules.acc.urn import (
    clean_urn, convert_region, decode_urn, encode_urn, is_encoded, lineage_urn,
    process_derivative_urn, validate_urn
)

ACC_URN = "urn:adsk.wipemea:fs.file:vf.AbC-123?version=2"


def test_region_conversion():
    assert convert_region(ACC_URN) == "urn:adsk.wipprod:fs.file:vf.AbC-123?version=2"


def test_encoding_is_url_safe_without_padding():
    encoded = process_derivative_urn(ACC_URN)
    assert "=" not in encoded
    assert "+" not in encoded and "/" not in encoded
    assert is_encoded(encoded)
    assert decode_urn(encoded) == convert_region(ACC_URN)


def test_encode_matches_standard_urlsafe_base64():
    urn = "urn:adsk.objects:os.object:bucket/model.rvt"
    expected = base64.urlsafe_b64encode(urn.encode()).decode().rstrip("=")
    assert encode_urn(urn) == expected


def test_validate_urn():
    assert validate_urn("urn:adsk.wipprod:fs.file:vf.AbC?version=3")
    assert validate_urn("urn:adsk.wipprod:fs.file:vf.AbC")
    assert not validate_urn(ACC_URN)
    assert not validate_urn("urn:adsk.objects:os.object:bucket/file")


def test_clean_and_lineage():
    assert clean_urn(ACC_URN) == "urn:adsk.wipemea:fs.file:vf.AbC-123"
    assert lineage_urn("abc") == "urn:adsk.wipprod:dm.lineage:abc"
    assert lineage_urn("urn:adsk.wipprod:dm.lineage:abc") == "urn:adsk.wipprod:dm.lineage:abc"
