# services/export_service.py

"""
Export service - spreadsheet downloads and Google Sheets sync
"""

import io
import logging
from typing import Any, List, Optional, Sequence
from urllib.parse import quote

import httpx
from openpyxl import Workbook

from awb_tracker.core.config import settings
from awb_tracker.core.errors import ExportError
from awb_tracker.models.tracking import TrackResult

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ['MAWB', 'Prefix', 'AWBNo', 'Status', 'Origin', 'Dest', 'Pcs', 'GrossWt', 'LastAct', 'DOUrl']

EXPORT_FIELDS = ['mawb', 'prefix', 'awb_no', 'status', 'origin', 'dest', 'pcs', 'gross_wt', 'last_act', 'do_url']


def result_rows(results: Sequence[TrackResult]) -> List[List[str]]:
    """Flatten results into export rows, one cell per EXPORT_HEADERS column"""
    return [
        [getattr(result, field) or "" for field in EXPORT_FIELDS]
        for result in results
    ]


def build_results_workbook(results: Sequence[TrackResult]) -> bytes:
    """Render results as an .xlsx file"""
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Sheet1"
    worksheet.append(EXPORT_HEADERS)
    for row in result_rows(results):
        worksheet.append(row)

    buffer = io.BytesIO()
    workbook.save(buffer)
    logger.info(f"Built export workbook with {len(results)} rows")
    return buffer.getvalue()


class GoogleSheetsExporter:
    """Pushes results to a Google spreadsheet: clear the range, then write header + rows"""

    def __init__(
            self,
            token: Optional[str] = None,
            *,
            api_base: Optional[str] = None,
            sheet_range: Optional[str] = None,
            timeout: float = 30.0,
            http_client: Optional[httpx.AsyncClient] = None
    ):
        self._token = token if token is not None else settings.google_sheets_token
        self._api_base = (api_base or settings.google_sheets_api_base).rstrip("/")
        self._range = sheet_range or settings.google_sheets_range
        self._timeout = timeout
        self._client = http_client

    @property
    def sheet_name(self) -> str:
        return self._range.split("!", 1)[0] if "!" in self._range else "Sheet1"

    def _values_url(self, spreadsheet_id: str, cell_range: str, suffix: str = "") -> str:
        return (
            f"{self._api_base}/spreadsheets/{quote(spreadsheet_id, safe='')}"
            f"/values/{quote(cell_range, safe='!:')}{suffix}"
        )

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> None:
        try:
            response = await client.request(
                method, url, headers={"Authorization": f"Bearer {self._token}"}, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExportError(
                f"Google Sheets rejected the request ({e.response.status_code}): {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise ExportError(f"Could not reach Google Sheets: {e}") from e

    async def export(self, spreadsheet_id: str, results: Sequence[TrackResult]) -> str:
        if not self._token:
            raise ExportError("Google Sheets export is not configured (AWB_TRACKER_GOOGLE_SHEETS_TOKEN)")

        values = [EXPORT_HEADERS] + result_rows(results)
        write_range = f"{self.sheet_name}!A1:J{len(values)}"
        logger.info(f"Exporting {len(results)} rows to spreadsheet {spreadsheet_id}")

        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        try:
            await self._send(client, "POST", self._values_url(spreadsheet_id, self._range, ":clear"))
            await self._send(
                client,
                "PUT",
                self._values_url(spreadsheet_id, write_range),
                params={"valueInputOption": "RAW"},
                json={"range": write_range, "majorDimension": "ROWS", "values": values}
            )
        finally:
            if self._client is None:
                await client.aclose()

        return f"Successfully updated Google Sheet: https://docs.google.com/spreadsheets/d/{spreadsheet_id}"
