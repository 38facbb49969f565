"""EDNS0 helpers: OPT record handling, client subnet and padding options."""

from __future__ import annotations

import ipaddress
from typing import List, Optional, Tuple, Union

import dns.edns
import dns.message

MIN_MSG_SIZE = 512

_ECS = dns.edns.OptionType.ECS
_PADDING = dns.edns.OptionType.PADDING

# A padding option carries a 4 byte header; an OPT record adds 11 more bytes.
_OPTION_HEADER_LEN = 4
_OPT_RECORD_LEN = 11


def _has_edns(m: dns.message.Message) -> bool:
    return m.edns >= 0


def _set_options(m: dns.message.Message, options: List[dns.edns.Option]) -> None:
    """Replace the options of m's OPT record, keeping its other fields."""
    if not _has_edns(m):
        raise ValueError("message has no EDNS0 record")
    m.use_edns(
        m.edns,
        m.ednsflags,
        m.payload,
        request_payload=m.request_payload,
        options=options,
        pad=getattr(m, "pad", 0),
    )


def upgrade_edns0(m: dns.message.Message) -> None:
    """Enable EDNS0 on m with a 512 byte UDP payload size.

    m must not already carry an OPT record.
    """
    if _has_edns(m):
        raise ValueError("message already has an EDNS0 record")
    m.use_edns(0, 0, MIN_MSG_SIZE, options=[])


def remove_edns0(m: dns.message.Message) -> None:
    """Remove the OPT record from m, if any."""
    if _has_edns(m):
        m.use_edns(False)


def get_edns0_option(m: dns.message.Message, code: int) -> Optional[dns.edns.Option]:
    """Return the first EDNS0 option of m with this code, or None."""
    for option in m.options:
        if option.otype == code:
            return option
    return None


def remove_edns0_option(m: dns.message.Message, code: int) -> None:
    """Remove the first EDNS0 option of m with this code, if any."""
    options = list(m.options)
    for i, option in enumerate(options):
        if option.otype == code:
            del options[i]
            _set_options(m, options)
            return


def get_msg_ecs(m: dns.message.Message) -> Optional[dns.edns.ECSOption]:
    """Return the client subnet option of m, or None."""
    return get_edns0_option(m, _ECS)


def remove_msg_ecs(m: dns.message.Message) -> None:
    """Remove the client subnet option of m, if any."""
    remove_edns0_option(m, _ECS)


def add_ecs(m: dns.message.Message, ecs: dns.edns.Option, overwrite: bool) -> bool:
    """Add ecs to m's OPT record.

    If m already has a client subnet option it is replaced only when overwrite
    is true. Returns True only when the option was new to m. m must carry an
    OPT record.
    """
    options = list(m.options)
    for i, option in enumerate(options):
        if option.otype == _ECS:
            if overwrite:
                options[i] = ecs
                _set_options(m, options)
            return False
    options.append(ecs)
    _set_options(m, options)
    return True


def new_edns0_subnet(
    ip: Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address], mask: int
) -> dns.edns.ECSOption:
    """Build a client subnet option for ip/mask with a scope prefix of 0."""
    return dns.edns.ECSOption(str(ipaddress.ip_address(ip)), mask, 0)


def _padding(length: int) -> dns.edns.GenericOption:
    return dns.edns.GenericOption(_PADDING, bytes(length))


def pad_to_minimum(m: dns.message.Message, min_len: int) -> Tuple[bool, bool]:
    """Pad m so that its wire form is at least min_len bytes long.

    Returns (upgraded, new_padding): whether EDNS0 was enabled on m and
    whether a padding option was added. Nothing changes if m is already long
    enough.
    """
    length = len(m.to_wire())
    if length >= min_len:
        return False, False

    if _has_edns(m):
        options = list(m.options)
        for i, option in enumerate(options):
            if option.otype == _PADDING:
                current = option.to_wire() or b""
                padding_len = min_len - length + len(current)
                if padding_len < 0:
                    return False, False
                options[i] = _padding(padding_len)
                _set_options(m, options)
                return False, False
        padding_len = min_len - _OPTION_HEADER_LEN - length
        if padding_len < 0:
            return False, False
        options.append(_padding(padding_len))
        _set_options(m, options)
        return False, True

    padding_len = min_len - _OPTION_HEADER_LEN - _OPT_RECORD_LEN - length
    if padding_len < 0:
        return False, False
    upgrade_edns0(m)
    _set_options(m, [_padding(padding_len)])
    return True, True