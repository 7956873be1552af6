"""Encoding and decoding of the line-delimited JSON control protocol.

Requests look like:

    {"id":1,"method":"toggle","params":[]}\\r\\n

Responses carry the same id and either a "result" list or an
"error" object with an integer "code" and a string "message".
"""

from dataclasses import dataclass
import json
import logging
from typing import Any, List, Sequence, Tuple, Union

from .exceptions import BadRequestError, ParseError
from .models import Method

INT16_MIN = -(2**15)
INT16_MAX = 2**15 - 1

# A method argument is either a string or an integer
Param = Union[str, int]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodResult:
    """A successful response"""

    id: int
    result: List[Any]


@dataclass(frozen=True)
class MethodError:
    """A response in which the device reports an error"""

    id: int
    code: int
    message: str


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _encode_param(param: Param) -> str:
    if isinstance(param, str):
        return json.dumps(param)
    if _is_int(param):
        return str(param)
    raise BadRequestError(f"unsupported parameter type: {param!r}")


def encode_request(request_id: int, method: Method, params: Sequence[Param]) -> bytes:
    """Produce the CRLF terminated request line for a call"""
    if not _is_int(request_id) or not INT16_MIN <= request_id <= INT16_MAX:
        raise BadRequestError(f"request id {request_id!r} is not a 16 bit integer")
    args = ", ".join(_encode_param(p) for p in params)
    line = f'{{"id":{request_id},"method":"{method.value}","params":[{args}]}}\r\n'
    return line.encode("utf-8")


def _load_json_object(data: bytes) -> Any:
    # The read may hand us a fixed size buffer with a NUL padded tail
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError("response is not valid utf-8") from exc
    text = text.rstrip("\x00").rstrip()
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ParseError(f"response is not valid json: {text!r}") from exc


def decode_request(data: bytes) -> Tuple[int, str, List[Param]]:
    """Parse a request line back into (id, method name, params)"""
    msg = _load_json_object(data)
    if (
        isinstance(msg, dict)
        and _is_int(msg.get("id"))
        and isinstance(msg.get("method"), str)
        and isinstance(msg.get("params"), list)
    ):
        return msg["id"], msg["method"], msg["params"]
    raise ParseError(f"not a request: {msg!r}")


def decode_response(data: bytes) -> Union[MethodResult, MethodError]:
    """Decode a response. The success shape is tried first, then the
    error shape. Raises ParseError when neither matches.

    data must hold exactly one message; a read that also picked up a
    second line, such as a pushed props notification, is rejected
    with ParseError rather than split"""
    msg = _load_json_object(data)
    if not isinstance(msg, dict) or not _is_int(msg.get("id")):
        raise ParseError(f"response has no id: {msg!r}")

    result = msg.get("result")
    if isinstance(result, list):
        return MethodResult(id=msg["id"], result=result)

    error = msg.get("error")
    if (
        isinstance(error, dict)
        and _is_int(error.get("code"))
        and isinstance(error.get("message"), str)
    ):
        return MethodError(id=msg["id"], code=error["code"], message=error["message"])

    _LOGGER.debug("response matches neither result nor error shape: %r", msg)
    raise ParseError(f"unrecognized response: {msg!r}")
