"""
Client snippet for a ready server.

Renders the browser code that opens a session against the server described by
a ConnectionDescriptor, pinning its certificate hashes, and counts the bytes
the server streams back.
"""

import base64

from .descriptor import CertificateHash, ConnectionDescriptor

PLAYGROUND_URL = "https://codepen.io/pen/?editors=0012"

_HASH_TEMPLATE = """{{
      algorithm: '{algorithm}',
      value: Uint8Array.from(atob('{value}'), (m) => m.codePointAt(0))
    }}"""

_CLIENT_TEMPLATE = """
Paste the following code into {playground} or similar:

(async function main ()  {{
  console.info('CLIENT create session')
  const transport = new WebTransport('{address}', {{
    serverCertificateHashes: [{hashes}]
  }})

  console.info('CLIENT wait for session')
  await transport.ready
  console.info('CLIENT session ready')

  console.info('CLIENT create bidi stream')
  const stream = await transport.createBidirectionalStream()
  const reader = stream.readable.getReader()

  let bytes = 0

  try {{
    while (true) {{
      const res = await reader.read()

      if (res.done) {{
        console.info('CLIENT read stream finished')
        break
      }}

      console.info('bytes', bytes)
      bytes += res.value.byteLength
    }}

    console.info('CLIENT received', bytes, 'bytes of {expected_bytes}')
  }} catch (err) {{
      console.info('CLIENT read errored', err)
  }}
}})()
"""

# The demo server streams 256 chunks of 1 MiB
EXPECTED_BYTES = 256 * 1024 * 1024


def _render_hash(cert: CertificateHash) -> str:
    return _HASH_TEMPLATE.format(
        algorithm=cert.algorithm,
        value=base64.b64encode(cert.value).decode("ascii"),
    )


def render_client_snippet(
    descriptor: ConnectionDescriptor,
    playground: str = PLAYGROUND_URL,
    expected_bytes: int = EXPECTED_BYTES,
) -> str:
    """Render the browser client for the given descriptor."""
    hashes = ",".join(_render_hash(h) for h in descriptor.server_certificate_hashes)
    return _CLIENT_TEMPLATE.format(
        playground=playground,
        address=descriptor.address,
        hashes=hashes,
        expected_bytes=expected_bytes,
    )
