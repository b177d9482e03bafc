import io
import json
from datetime import datetime

import httpx
import pytest
from openpyxl import load_workbook

from awb_tracker.core.errors import ExportError
from awb_tracker.models.tracking import TrackResult
from awb_tracker.services.export_service import (
    EXPORT_HEADERS,
    GoogleSheetsExporter,
    build_results_workbook,
    result_rows
)
from awb_tracker.utils.file_handler import UploadRejected, export_filename, validate_upload


def _results():
    return [
        TrackResult(
            id=1, job_id=1, created_at=datetime(2024, 3, 1),
            mawb="111-22222222", prefix="111", awb_no="22222222",
            status="DELIVERED", origin="KUL", dest="SIN", pcs="2", gross_wt="15.5",
            last_act="Delivered", last_act_dt="01 Mar 2024", do_url="https://x.test/do.pdf",
        ),
        TrackResult(
            id=2, job_id=1, created_at=datetime(2024, 3, 1),
            mawb="333-44444444", prefix="333", awb_no="44444444",
        ),
    ]


def test_headers_are_in_fixed_order():
    assert EXPORT_HEADERS == ['MAWB', 'Prefix', 'AWBNo', 'Status', 'Origin', 'Dest', 'Pcs', 'GrossWt', 'LastAct', 'DOUrl']


def test_missing_fields_export_as_blank_cells():
    rows = result_rows(_results())
    assert rows[0] == ["111-22222222", "111", "22222222", "DELIVERED", "KUL", "SIN", "2", "15.5",
                       "Delivered", "https://x.test/do.pdf"]
    assert rows[1] == ["333-44444444", "333", "44444444", "", "", "", "", "", "", ""]


def test_workbook_has_header_then_rows():
    content = build_results_workbook(_results())

    sheet = load_workbook(io.BytesIO(content)).active
    values = [list(row) for row in sheet.iter_rows(values_only=True)]

    assert values[0] == EXPORT_HEADERS
    assert values[1][0] == "111-22222222"
    assert values[2][:3] == ["333-44444444", "333", "44444444"]
    assert len(values) == 3


@pytest.mark.asyncio
async def test_sheets_export_clears_then_writes():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    exporter = GoogleSheetsExporter("token-123", api_base="https://sheets.test/v4", http_client=client)

    message = await exporter.export("sheet-id", _results())
    await client.aclose()

    assert "sheet-id" in message
    assert [r.method for r in requests] == ["POST", "PUT"]
    assert requests[0].url.path.endswith(":clear")
    assert "/spreadsheets/sheet-id/values/" in requests[1].url.path
    assert requests[1].url.params["valueInputOption"] == "RAW"
    assert all(r.headers["Authorization"] == "Bearer token-123" for r in requests)

    body = json.loads(requests[1].content)
    assert body["values"][0] == EXPORT_HEADERS
    assert len(body["values"]) == 3
    assert body["range"] == "Sheet1!A1:J3"


@pytest.mark.asyncio
async def test_sheets_export_requires_token():
    exporter = GoogleSheetsExporter("")
    with pytest.raises(ExportError, match="not configured"):
        await exporter.export("sheet-id", _results())


@pytest.mark.asyncio
async def test_sheets_rejection_becomes_export_error():
    client = httpx.AsyncClient(transport=httpx.MockTransport(
        lambda request: httpx.Response(403, json={"error": {"message": "forbidden"}})
    ))
    exporter = GoogleSheetsExporter("token", http_client=client)

    with pytest.raises(ExportError, match="403"):
        await exporter.export("sheet-id", [])
    await client.aclose()


@pytest.mark.parametrize("filename", ["awbs.csv", "AWBS.XLSX", "old.xls"])
def test_validate_upload_accepts_spreadsheets(filename):
    assert validate_upload(filename, 10) in (".csv", ".xlsx", ".xls")


@pytest.mark.parametrize("filename, size", [
    ("awbs.pdf", 10),
    (None, 10),
    ("awbs.csv", 0),
    ("awbs.csv", 11 * 1024 * 1024),
])
def test_validate_upload_rejects(filename, size):
    with pytest.raises(UploadRejected):
        validate_upload(filename, size)


def test_export_filename_is_header_safe():
    assert export_filename('march "batch".csv') == "AWB_Tracking_march batch.xlsx"
