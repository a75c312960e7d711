"""
Message result decoding

The response data of an executed transaction is a TxMsgData envelope with
one MsgData entry per message. Only the first entry is decoded. MsgData
carries the request type tag, not the response type, so the response type
is derived by appending "Response" to the tag.
"""

from __future__ import annotations

from google.protobuf.any_pb2 import Any
from google.protobuf.message import DecodeError as ProtoDecodeError

from cosmpy.protos.cosmos.base.abci.v1beta1.abci_pb2 import TxMsgData

from ..errors import DecodeError
from ..types import BroadcastResponse

RESPONSE_TYPE_SUFFIX = "Response"


def decode_response(response: BroadcastResponse, message_type):
    """
    Decode the first message result of a broadcast into message_type

    Args:
        response: Successful broadcast response
        message_type: Protobuf message class, or an instance to fill in place

    Returns:
        Populated message instance

    Raises:
        DecodeError: Empty, malformed or mismatching payload
    """
    if not response.raw_data:
        raise DecodeError.empty()

    try:
        tx_msg_data = TxMsgData.FromString(response.raw_data)
    except ProtoDecodeError as e:
        raise DecodeError.malformed(e)

    if not tx_msg_data.data:
        raise DecodeError.empty()

    first = tx_msg_data.data[0]
    result = Any(type_url=first.msg_type + RESPONSE_TYPE_SUFFIX, value=first.data)

    target = message_type() if isinstance(message_type, type) else message_type
    try:
        unpacked = result.Unpack(target)
    except ProtoDecodeError as e:
        raise DecodeError.malformed(e)
    if not unpacked:
        raise DecodeError.type_mismatch(result.type_url, target.DESCRIPTOR.full_name)
    return target
