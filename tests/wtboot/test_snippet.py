"""
Tests for wtboot/snippet.py.
"""

import pytest

from wtboot.descriptor import CertificateHash, ConnectionDescriptor
from wtboot.snippet import EXPECTED_BYTES, PLAYGROUND_URL, render_client_snippet


@pytest.mark.unit
class TestRenderClientSnippet:
    """Test the browser client rendering."""

    def test_contains_address_and_hash(self):
        snippet = render_client_snippet(ConnectionDescriptor.from_sha256(b"hello"))

        assert "new WebTransport('https://127.0.0.1:12345/say-hello', {" in snippet
        assert "algorithm: 'sha-256'" in snippet
        assert "atob('aGVsbG8=')" in snippet

    def test_mentions_playground(self):
        snippet = render_client_snippet(ConnectionDescriptor.from_sha256(b"x"))
        assert f"Paste the following code into {PLAYGROUND_URL}" in snippet

    def test_expected_bytes(self):
        descriptor = ConnectionDescriptor.from_sha256(b"x")

        assert f"bytes of {EXPECTED_BYTES}" in render_client_snippet(descriptor)
        assert "bytes of 1024" in render_client_snippet(descriptor, expected_bytes=1024)

    def test_every_hash_is_rendered(self):
        descriptor = ConnectionDescriptor(
            "https://a/b", (CertificateHash(b"one"), CertificateHash(b"two"))
        )
        snippet = render_client_snippet(descriptor)

        assert snippet.count("algorithm: 'sha-256'") == 2
        assert snippet.index("atob('b25l')") < snippet.index("atob('dHdv')")

    def test_braces_are_balanced(self):
        snippet = render_client_snippet(ConnectionDescriptor.from_sha256(b"hello"))
        assert snippet.count("{") == snippet.count("}")
