from __future__ import annotations

from typing import Any, Mapping

from edgeperf.metrics import RequestRecord


class RequestLedger:
    """Request records of one navigation, keyed by CDP request id."""

    def __init__(self) -> None:
        self._records: dict[str, RequestRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._records

    def on_response_received(self, params: Mapping[str, Any]) -> None:
        request_id = params.get("requestId")
        response = params.get("response")
        if not isinstance(request_id, str) or not isinstance(response, Mapping):
            return
        record = self._records.get(request_id)
        if record is None:
            record = RequestRecord(request_id=request_id)
            self._records[request_id] = record
        record.apply_response(response)

    def records(self) -> list[RequestRecord]:
        return list(self._records.values())
