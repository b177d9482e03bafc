# scrapers/smartkargo_scraper.py

"""
SmartKargo AWB Tracking Scraper
"""

import sys
import asyncio
import logging
from typing import Optional
from playwright.async_api import async_playwright, Error as PlaywrightError

from awb_tracker.core.config import settings
from awb_tracker.core.errors import TrackingLookupError
from awb_tracker.models.tracking import TrackRecord

logger = logging.getLogger(__name__)

# Fix for Windows asyncio + Playwright subprocess issues
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
    logger.info("Windows asyncio event loop policy set to ProactorEventLoopPolicy")

# Result label id -> TrackRecord field
RESULT_LABELS = {
    'status': '#lblLatestActivity',
    'origin': '#lblOrigin',
    'dest': '#lblDestination',
    'pcs': '#lblPcs',
    'gross_wt': '#lblGrossWt',
    'last_act': '#lblLastActivityDescription',
    'last_act_dt': '#lblLastActivityDate',
}

DELIVERY_ORDER_LINKS = '#gvDeliveryOrders a'


async def _label_text(page, selector: str) -> Optional[str]:
    element = page.locator(selector)
    if await element.count() == 0:
        return None
    text = await element.first.text_content()
    text = (text or "").strip()
    return text or None


async def extract_record(page) -> TrackRecord:
    """Read the result labels and delivery-order link off a tracking result page"""
    fields = {}
    for field, selector in RESULT_LABELS.items():
        fields[field] = await _label_text(page, selector)

    for link in await page.locator(DELIVERY_ORDER_LINKS).all():
        href = await link.get_attribute('href')
        if href and href.lower().endswith('.pdf'):
            fields['do_url'] = href

    return TrackRecord(**fields)


class SmartKargoScraper:
    def __init__(self, tracking_url: Optional[str] = None, headless: Optional[bool] = None,
                 timeout_ms: Optional[int] = None):
        self.tracking_url = tracking_url or settings.tracking_url
        self.headless = settings.headless if headless is None else headless
        self.timeout_ms = timeout_ms or settings.lookup_timeout_ms
        logger.info(f"Initialized SmartKargoScraper for {self.tracking_url}")

    async def track(self, prefix: str, awb_no: str) -> TrackRecord:
        """Submit the tracking form for one AWB and scrape the result.

        Each call runs in a fresh browser context so the site's form state
        (view state, session cookie) is never shared between lookups.
        """
        logger.info(f"Tracking AWB {prefix}-{awb_no}")

        async with async_playwright() as p:
            browser = await p.chromium.launch(
                headless=self.headless,
                args=['--disable-blink-features=AutomationControlled']
            )
            try:
                context = await browser.new_context(user_agent=settings.user_agent)
                page = await context.new_page()
                page.set_default_timeout(self.timeout_ms)

                response = await page.goto(self.tracking_url, wait_until="domcontentloaded")
                if response is not None and not response.ok:
                    raise TrackingLookupError(
                        f"Failed to access tracking site: {response.status} {response.status_text}"
                    )
                logger.debug("Tracking form loaded")

                if await page.locator('#__VIEWSTATE').count() == 0:
                    raise TrackingLookupError("Tracking form is missing its view state")

                await page.fill('#txtPrefix', prefix)
                await page.fill('#TextBoxAWBno', awb_no)
                logger.debug("Form filled, submitting")

                async with page.expect_navigation(wait_until="domcontentloaded"):
                    await page.click('#ButtonGO')

                record = await extract_record(page)
                logger.info(f"AWB {prefix}-{awb_no}: status={record.status!r}")
                return record

            except TrackingLookupError:
                raise
            except PlaywrightError as e:
                logger.error(f"Playwright error tracking {prefix}-{awb_no}: {e}")
                raise TrackingLookupError(f"Tracking request failed: {e}") from e

            finally:
                await browser.close()
                logger.debug("Browser closed")
