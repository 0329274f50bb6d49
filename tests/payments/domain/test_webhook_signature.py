from marketplace.gateway.signature import compute_signature, sign_payload, verify_signature

SECRET = "whsec_test"
PAYLOAD = b'{"id": "evt_001", "type": "payment_intent.succeeded"}'
NOW = 1_700_000_000


def test_valid_signature():
    header = sign_payload(PAYLOAD, SECRET, timestamp=NOW)
    assert header.startswith(f"t={NOW},v1=")
    assert verify_signature(PAYLOAD, header, SECRET, now=NOW + 10)


def test_tampered_payload():
    header = sign_payload(PAYLOAD, SECRET, timestamp=NOW)
    assert not verify_signature(PAYLOAD + b" ", header, SECRET, now=NOW)


def test_wrong_secret():
    header = sign_payload(PAYLOAD, "whsec_other", timestamp=NOW)
    assert not verify_signature(PAYLOAD, header, SECRET, now=NOW)


def test_stale_timestamp():
    header = sign_payload(PAYLOAD, SECRET, timestamp=NOW)
    assert not verify_signature(PAYLOAD, header, SECRET, now=NOW + 301)
    assert verify_signature(PAYLOAD, header, SECRET, now=NOW + 301, tolerance=0)


def test_any_of_several_signatures_matches():
    good = compute_signature(PAYLOAD, SECRET, NOW)
    header = f"t={NOW},v1=deadbeef,v1={good}"
    assert verify_signature(PAYLOAD, header, SECRET, now=NOW)


def test_malformed_headers():
    for header in (None, "", "garbage", f"t={NOW}", "v1=abc", "t=abc,v1=abc"):
        assert not verify_signature(PAYLOAD, header, SECRET, now=NOW)


def test_missing_secret_never_verifies():
    header = sign_payload(PAYLOAD, SECRET, timestamp=NOW)
    assert not verify_signature(PAYLOAD, header, "", now=NOW)
