"""Pre-built SIP messages for testing.

Ready-to-use requests for iFC evaluation and served-user tests.
"""

HOME_DOMAIN = "homedomain"

SDP_BODY = (
    "v=0\r\n"
    "o=- 2890844526 2890844526 IN IP4 10.0.0.1\r\n"
    "s=-\r\n"
    "c=IN IP4 10.0.0.1\r\n"
    "t=0 0\r\n"
    "m=audio 49170 RTP/AVP 0 8\r\n"
    "a=rtpmap:0 PCMU/8000\r\n"
)


def build_request(
    method: str = "INVITE",
    request_uri: str = f"sip:6505551234@{HOME_DOMAIN}",
    from_uri: str = f"sip:6505550000@{HOME_DOMAIN}",
    to_uri: str = f"sip:6505551234@{HOME_DOMAIN}",
    call_id: str = "0gQAAC8WAAACBAAALxYAAAL8P3UbW8l4mT8YBkKGRKc5SOHaJ1gMRqsUOO4ohntC@10.114.61.213",
    extra_headers: tuple[str, ...] = (),
    body: str = "",
    content_type: str = "application/sdp",
) -> bytes:
    """Build a SIP request for testing.

    Args:
        method: Request method
        request_uri: Request-URI
        from_uri: URI placed in the From header
        to_uri: URI placed in the To header
        call_id: SIP Call-ID
        extra_headers: Additional "Name: value" header lines
        body: Message body (SDP)
        content_type: Content-Type used when a body is present

    Returns:
        Complete SIP request as bytes
    """
    headers = [
        f"{method} {request_uri} SIP/2.0",
        "Via: SIP/2.0/TCP 10.114.61.213:5061;rport;branch=z9hG4bKPjmo1aimuq33BAI4rjhgQgBr4sY5e9kSPI",
        "Max-Forwards: 68",
        f"From: <{from_uri}>;tag=10.114.61.213+1+8c8b232a+5fb751cf",
        f"To: <{to_uri}>",
        f"Call-ID: {call_id}",
        f"CSeq: 16567 {method}",
        "Contact: <sip:6505550000@10.114.61.213:5061;transport=tcp;ob>",
        *extra_headers,
    ]
    if body:
        headers.append(f"Content-Type: {content_type}")
    headers.append(f"Content-Length: {len(body.encode('utf-8'))}")

    return ("\r\n".join(headers) + "\r\n\r\n" + body).encode("utf-8")


INVITE_WITH_SDP = build_request(body=SDP_BODY)

MESSAGE_REQUEST = build_request(
    method="MESSAGE",
    extra_headers=("Content-Type: text/plain", "P-Asserted-Identity: <sip:6505550000@homedomain>"),
)

FOREIGN_INVITE = build_request(
    request_uri="sip:5551234@otherdomain",
    from_uri="sip:5550000@otherdomain",
    to_uri="sip:5551234@otherdomain",
)
