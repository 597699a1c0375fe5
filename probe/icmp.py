"""Address resolution and ICMP echo probing"""
import socket
import time
from typing import Dict, List, Tuple
from icmplib import ICMPError, ICMPRequest, ICMPSocketError, ICMPv4Socket, ICMPv6Socket, TimeoutExceeded
from icmplib.utils import unique_identifier
from logging_config import get_logger
from .models import AddressFamily, ProbeError, ProbeSettings, ProbeTarget


logger = get_logger(__name__)

_SOCKET_FAMILIES = {
    AddressFamily.IPV4: socket.AF_INET,
    AddressFamily.IPV6: socket.AF_INET6,
}

# sequence -> (identifier after send, send time)
Pending = Dict[int, Tuple[int, float]]


def resolve_target(target: ProbeTarget) -> str:
    """Resolve a target to the first address of its requested family.

    Raises ProbeError when the name does not resolve or has no address of
    that family.
    """
    family = _SOCKET_FAMILIES.get(target.family)
    if family is None:
        raise ProbeError(f"unknown address family for {target.host}: {target.family}")

    try:
        infos = socket.getaddrinfo(target.host, None, family, socket.SOCK_RAW)
    except (socket.gaierror, UnicodeError) as e:
        raise ProbeError(f"lookup {target.host}: {e}") from e

    for info in infos:
        address = info[4][0]
        if address:
            # strip any zone index from link-local IPv6 answers
            return address.split('%', 1)[0]

    raise ProbeError(f"no {target.family.value} address found for {target.host}")


def icmp_round_trips(address: str, target: ProbeTarget, settings: ProbeSettings) -> List[float]:
    """Send ``settings.count`` echo requests ``settings.interval`` apart and return
    the round trips (ms) of the replies received.

    Replies are collected until ``settings.timeout`` after the last request was
    sent, so a target that never answers costs about
    ``count * interval + timeout``. Timeouts, ICMP error replies and requests
    that could not be sent count as lost packets. Failing to open the socket
    raises ProbeError.
    """
    socket_class = ICMPv6Socket if target.family == AddressFamily.IPV6 else ICMPv4Socket
    try:
        sock = socket_class(privileged=settings.privileged)
    except (ICMPSocketError, OSError) as e:
        raise ProbeError(f"icmp socket for {address}: {e}") from e

    identifier = unique_identifier()
    pending: Pending = {}
    round_trips: List[float] = []

    try:
        for sequence in range(settings.count):
            request = ICMPRequest(address, identifier, sequence)
            sent_at = time.time()
            try:
                sock.send(request)
            except ICMPSocketError as e:
                logger.debug("Echo request not sent", address=address, sequence=sequence, error=str(e))
            else:
                # unprivileged sockets on Linux get their identifier from the kernel
                pending[sequence] = (request.id, sent_at)

            if sequence + 1 < settings.count:
                next_send = sent_at + settings.interval
                _receive_until(sock, pending, round_trips, next_send)
                remaining = next_send - time.time()
                if remaining > 0:
                    time.sleep(remaining)

        _receive_until(sock, pending, round_trips, time.time() + settings.timeout)
    finally:
        sock.close()

    return round_trips


def _receive_until(sock, pending: Pending, round_trips: List[float], deadline: float) -> None:
    """Match replies to pending requests until the deadline passes or nothing is pending"""
    while pending:
        remaining = deadline - time.time()
        if remaining <= 0:
            return

        try:
            reply = sock.receive(None, remaining)
        except TimeoutExceeded:
            return
        except ICMPSocketError as e:
            logger.debug("Receiving echo replies failed", error=str(e))
            return

        entry = pending.get(reply.sequence)
        if entry is None or entry[0] != reply.id:
            # raw sockets see every ICMP message on the host
            continue

        del pending[reply.sequence]
        try:
            reply.raise_for_status()
        except ICMPError as e:
            logger.debug("Echo request answered with an ICMP error", source=reply.source, error=str(e))
            continue

        round_trips.append(max(0.0, reply.time - entry[1]) * 1000.0)
