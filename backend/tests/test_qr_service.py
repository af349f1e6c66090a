"""QR token codec tests."""
import base64
import json

import pytest

from attendance_tracker.services.qr_service import (
    QRTokenCodec, MalformedToken, IntegrityFailure, ExpiredToken, EncodingFailure, TokenError
)

NOW = 1_772_442_000

@pytest.fixture
def codec():
    return QRTokenCodec('unit-test-key', validity_seconds=180, freshness_seconds=300)

def _raw(data):
    return base64.b64encode(json.dumps(data, separators=(',', ':')).encode()).decode()

def test_round_trip(codec):
    encoded = codec.encode('42', now=NOW)
    payload = codec.decode(encoded.token, now=NOW + 5)
    
    assert payload.session_id == '42'
    assert payload.issued_at == NOW
    assert payload.expires_at == NOW + 180
    assert payload.digest == codec.sign('42', NOW, payload.nonce)
    assert encoded.qr_image_data.startswith('data:image/png;base64,')

def test_wire_format_uses_short_keys(codec):
    token = codec.encode(7, now=NOW).token
    data = json.loads(base64.b64decode(token))
    
    assert set(data) == {'s', 't', 'n', 'e', 'h'}
    assert data['s'] == '7'
    assert len(data['h']) == 16
    assert len(data['n']) == 16

def test_tokens_are_unique(codec):
    tokens = {codec.encode('42', now=NOW).token for _ in range(20)}
    assert len(tokens) == 20

def test_different_key_fails_integrity(codec):
    token = codec.encode('42', now=NOW).token
    other = QRTokenCodec('another-key')
    with pytest.raises(IntegrityFailure):
        other.decode(token, now=NOW)

def test_single_character_tamper_never_changes_identity(codec):
    token = codec.encode('1234', now=NOW).token
    original = codec.decode(token, now=NOW)
    
    for i, char in enumerate(token):
        tampered = token[:i] + ('A' if char != 'A' else 'B') + token[i + 1:]
        try:
            payload = codec.decode(tampered, now=NOW)
        except (MalformedToken, IntegrityFailure):
            continue
        # Only the unsigned advisory expiry may differ
        assert (payload.session_id, payload.issued_at, payload.nonce, payload.digest) == \
            (original.session_id, original.issued_at, original.nonce, original.digest)

def test_forged_session_id_rejected(codec):
    data = json.loads(base64.b64decode(codec.encode('1', now=NOW).token))
    data['s'] = '2'
    with pytest.raises(IntegrityFailure):
        codec.decode(_raw(data), now=NOW)

def test_forged_expiry_does_not_extend_freshness(codec):
    data = json.loads(base64.b64decode(codec.encode('1', now=NOW).token))
    data['e'] = NOW + 10 ** 6
    with pytest.raises(ExpiredToken):
        codec.decode(_raw(data), now=NOW + 301)

@pytest.mark.parametrize('age, expired', [
    (299, False),
    (300, False),
    (301, True),
])
def test_freshness_boundary(codec, age, expired):
    token = codec.encode('42', now=NOW - age).token
    if expired:
        with pytest.raises(ExpiredToken):
            codec.decode(token, now=NOW)
    else:
        assert codec.decode(token, now=NOW).session_id == '42'

def test_future_timestamp_beyond_skew_rejected(codec):
    token = codec.encode('42', now=NOW + 120).token
    with pytest.raises(IntegrityFailure):
        codec.decode(token, now=NOW)

def test_small_clock_skew_tolerated(codec):
    token = codec.encode('42', now=NOW + 10).token
    assert codec.decode(token, now=NOW).session_id == '42'

@pytest.mark.parametrize('token', [
    '',
    '   ',
    '!!!not-base64!!!',
    base64.b64encode(b'not json').decode(),
    base64.b64encode(b'\xff\xfe\xfd').decode(),
    _raw(['s', 't', 'n', 'h']),
    _raw({'s': '1', 't': NOW, 'n': 'abc'}),
    _raw({'s': '1', 't': str(NOW), 'n': 'abc', 'h': 'x'}),
    _raw({'s': 1, 't': NOW, 'n': 'abc', 'h': 'x'}),
    _raw({'s': '1', 't': True, 'n': 'abc', 'h': 'x'}),
    _raw({'s': '1', 't': NOW, 'n': 'abc', 'h': 'x', 'e': 'soon'}),
    'A' * 2000,
])
def test_malformed_tokens(codec, token):
    with pytest.raises(MalformedToken):
        codec.decode(token, now=NOW)

def test_non_string_token_is_malformed(codec):
    with pytest.raises(MalformedToken):
        codec.decode(None, now=NOW)

def test_non_canonical_base64_rejected(codec):
    token = codec.encode('42', now=NOW).token
    raw = base64.b64decode(token)
    # Same bytes, newline inserted
    assert base64.b64decode(token[:8] + '\n' + token[8:]) == raw
    with pytest.raises(MalformedToken):
        codec.decode(token[:8] + '\n' + token[8:], now=NOW)

def test_non_ascii_digest_is_integrity_failure(codec):
    with pytest.raises(IntegrityFailure):
        codec.decode(_raw({'s': '1', 't': NOW, 'n': 'abc', 'h': 'é' * 16}), now=NOW)

def test_error_reasons():
    assert issubclass(MalformedToken, TokenError)
    assert MalformedToken.reason == 'malformed_token'
    assert IntegrityFailure.reason == 'integrity_failure'
    assert ExpiredToken.reason == 'expired_token'

def test_render_failure_raises_encoding_failure(codec, monkeypatch):
    def broken(self, *args, **kwargs):
        raise RuntimeError('no image backend')
    monkeypatch.setattr('qrcode.QRCode.make_image', broken)
    
    with pytest.raises(EncodingFailure):
        codec.encode('42', now=NOW)

def test_empty_signing_key_rejected():
    with pytest.raises(ValueError):
        QRTokenCodec('')
