from engagesdk.signing import RequestSigner, format_uri, sign


def test_sign_matches_reference_digest():
    assert sign("abc", "s3cr3t") == "66350530E0F11478682CFA31E8A2A9CC"


def test_sign_is_deterministic_and_input_sensitive():
    digests = {
        sign("abc", "s3cr3t"),
        sign("abd", "s3cr3t"),
        sign("abc", "s3cr3u"),
        sign('{"eventList":[]}', "s3cr3t"),
    }
    assert sign("abc", "s3cr3t") == sign("abc", "s3cr3t")
    assert len(digests) == 4
    assert sign('{"eventList":[]}', "s3cr3t") == "C093D758D217CD2C6E49EBECD382BDE1"


def test_format_uri_substitutes_placeholders():
    url = format_uri("{host}/{env_key}/bulk/hash/{hash}", "https://collect.example", "env1", "ABC")
    assert url == "https://collect.example/env1/bulk/hash/ABC"
    assert format_uri("{host}/{env_key}/bulk", "http://h", "k") == "http://h/k/bulk"


def test_signer_picks_plain_url_without_secret():
    plain = RequestSigner(None)
    assert plain.enabled is False
    assert plain.sign("abc") is None
    assert plain.select("{host}/{env_key}", "{host}/{env_key}/hash/{hash}", "http://h", "k", "abc") == "http://h/k"

    signed = RequestSigner("s3cr3t")
    url = signed.select("{host}/{env_key}", "{host}/{env_key}/hash/{hash}", "http://h", "k", "abc")
    assert url == "http://h/k/hash/66350530E0F11478682CFA31E8A2A9CC"
