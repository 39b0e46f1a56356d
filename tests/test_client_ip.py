import hashlib

from lead_intake.services.client_ip import NO_IP, client_fingerprint, hash_ip, resolve_client_ip

HEADERS = ["x-nf-client-connection-ip", "x-forwarded-for"]


def test_platform_header_wins():
    headers = {"x-nf-client-connection-ip": "203.0.113.7", "x-forwarded-for": "198.51.100.1"}
    assert resolve_client_ip(headers, HEADERS) == "203.0.113.7"


def test_forwarded_for_uses_first_token():
    headers = {"x-forwarded-for": " 198.51.100.1 , 10.0.0.1, 10.0.0.2"}
    assert resolve_client_ip(headers, HEADERS) == "198.51.100.1"


def test_empty_platform_header_falls_through():
    headers = {"x-nf-client-connection-ip": "", "x-forwarded-for": "198.51.100.1"}
    assert resolve_client_ip(headers, HEADERS) == "198.51.100.1"


def test_no_headers():
    assert resolve_client_ip({}, HEADERS) == ""
    assert client_fingerprint({}, HEADERS) == NO_IP == "noip"


def test_blank_first_token_is_noip():
    assert client_fingerprint({"x-forwarded-for": " , 10.0.0.1"}, HEADERS) == "noip"


def test_fingerprint_is_sha256_hex_of_ip():
    fp = client_fingerprint({"x-forwarded-for": "198.51.100.1"}, HEADERS)
    assert fp == hashlib.sha256(b"198.51.100.1").hexdigest()
    assert len(fp) == 64
    assert "198.51.100.1" not in fp
    assert fp == hash_ip("198.51.100.1")
    assert hash_ip("198.51.100.2") != fp
