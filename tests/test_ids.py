from app.core.ids import parse_object_id


def test_parse_object_id_accepts_24_hex():
    oid = parse_object_id("5f1d7f1d7f1d7f1d7f1d7f1d")
    assert str(oid) == "5f1d7f1d7f1d7f1d7f1d7f1d"


def test_parse_object_id_rejects_12_char_references():
    # bson would read these as raw 12-byte ObjectIds
    assert parse_object_id("inv_17000000") is None
    assert parse_object_id("np-441100000") is None


def test_parse_object_id_rejects_empty_and_malformed():
    assert parse_object_id(None) is None
    assert parse_object_id("") is None
    assert parse_object_id("not-an-object-id") is None
    assert parse_object_id("zz1d7f1d7f1d7f1d7f1d7f1d") is None
