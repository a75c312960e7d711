"""
Unit tests for message result decoding
"""

import sys
import unittest
from pathlib import Path

from cosmpy.protos.cosmos.bank.v1beta1.tx_pb2 import MsgSendResponse
from cosmpy.protos.cosmos.base.abci.v1beta1.abci_pb2 import MsgData, TxMsgData
from cosmpy.protos.cosmos.gov.v1beta1.tx_pb2 import MsgSubmitProposalResponse

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from cosmos_client.errors import DecodeError, ErrorCode
from cosmos_client.infra.decoder import decode_response
from cosmos_client.types import BroadcastResponse

SUBMIT_PROPOSAL = "/cosmos.gov.v1beta1.MsgSubmitProposal"


def response_with(*entries):
    data = TxMsgData(data=[MsgData(msg_type=t, data=d) for t, d in entries])
    return BroadcastResponse(code=0, raw_data=data.SerializeToString())


class TestDecodeResponse(unittest.TestCase):

    def test_decodes_first_result(self):
        """The first message result is decoded into the requested type"""
        payload = MsgSubmitProposalResponse(proposal_id=17).SerializeToString()
        response = response_with((SUBMIT_PROPOSAL, payload))

        result = decode_response(response, MsgSubmitProposalResponse)

        self.assertIsInstance(result, MsgSubmitProposalResponse)
        self.assertEqual(result.proposal_id, 17)

    def test_fills_instance_in_place(self):
        payload = MsgSubmitProposalResponse(proposal_id=3).SerializeToString()
        target = MsgSubmitProposalResponse()

        result = decode_response(response_with((SUBMIT_PROPOSAL, payload)), target)

        self.assertIs(result, target)
        self.assertEqual(target.proposal_id, 3)

    def test_only_first_entry(self):
        first = MsgSubmitProposalResponse(proposal_id=1).SerializeToString()
        second = MsgSubmitProposalResponse(proposal_id=2).SerializeToString()

        result = response_with((SUBMIT_PROPOSAL, first), (SUBMIT_PROPOSAL, second)).decode(
            MsgSubmitProposalResponse
        )

        self.assertEqual(result.proposal_id, 1)

    def test_empty_payload(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_response(BroadcastResponse(code=0), MsgSendResponse)

        self.assertEqual(ctx.exception.code, ErrorCode.DECODE_EMPTY)

    def test_no_entries(self):
        # Well-formed envelope holding only an unknown field
        response = BroadcastResponse(code=0, raw_data=b"\x1a\x00")

        with self.assertRaises(DecodeError) as ctx:
            decode_response(response, MsgSendResponse)

        self.assertEqual(ctx.exception.code, ErrorCode.DECODE_EMPTY)

    def test_malformed_payload(self):
        response = BroadcastResponse(code=0, raw_data=b"\xff\xff\xff")

        with self.assertRaises(DecodeError) as ctx:
            decode_response(response, MsgSendResponse)

        self.assertEqual(ctx.exception.code, ErrorCode.DECODE_MALFORMED)

    def test_type_mismatch(self):
        response = response_with(("/cosmos.bank.v1beta1.MsgSend", b""))

        with self.assertRaises(DecodeError) as ctx:
            decode_response(response, MsgSubmitProposalResponse)

        self.assertEqual(ctx.exception.code, ErrorCode.DECODE_TYPE_MISMATCH)
        self.assertEqual(ctx.exception.type_url, "/cosmos.bank.v1beta1.MsgSendResponse")

    def test_empty_response_message(self):
        """Empty result messages decode to a default instance"""
        response = response_with(("/cosmos.bank.v1beta1.MsgSend", b""))

        result = response.decode(MsgSendResponse)

        self.assertIsInstance(result, MsgSendResponse)


if __name__ == "__main__":
    unittest.main()
