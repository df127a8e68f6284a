"""Amazon PA-API 5.0 extractor.

Amazon blocks plain page scraping, so this source only runs through the
Product Advertising API 5.0 and stays disabled until credentials are set.
Documentation: https://webservices.amazon.com/paapi5/documentation/
"""

import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.config import settings
from app.core.exceptions import ScraperError
from app.scrapers.base import BaseAPIExtractor, ScrapedListing
from app.scrapers.utils.json_tree import dig
from app.scrapers.utils.normalizer import coerce_price


class AmazonExtractor(BaseAPIExtractor):
    """Amazon PA-API 5.0 SearchItems extractor.

    Requires AMAZON_ACCESS_KEY, AMAZON_SECRET_KEY and AMAZON_PARTNER_TAG.
    Implements AWS Signature Version 4 authentication.
    """

    source = "amazon"
    base_url = "https://www.amazon.com"

    missing_credentials_message = (
        "Amazon scraping requires PA-API credentials. Set AMAZON_ACCESS_KEY, "
        "AMAZON_SECRET_KEY, and AMAZON_PARTNER_TAG environment variables."
    )

    # API Configuration
    API_HOST = "webservices.amazon.com"
    API_PATH = "/paapi5/searchitems"
    API_REGION = "us-east-1"
    API_SERVICE = "ProductAdvertisingAPI"
    API_TARGET = "com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems"
    MARKETPLACE = "www.amazon.com"

    SEARCH_KEYWORDS = "deals"
    ITEM_COUNT = 10  # API max per request

    def __init__(self, fetcher=None):
        super().__init__(fetcher)
        self.access_key = settings.AMAZON_ACCESS_KEY
        self.secret_key = settings.AMAZON_SECRET_KEY
        self.partner_tag = settings.AMAZON_PARTNER_TAG

    def has_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key and self.partner_tag)

    async def fetch_listings(self) -> List[ScrapedListing]:
        payload = {
            "Keywords": self.SEARCH_KEYWORDS,
            "Resources": [
                "Images.Primary.Large",
                "ItemInfo.Title",
                "ItemInfo.ByLineInfo",
                "Offers.Listings.Price",
                "Offers.Listings.SavingBasis",
            ],
            "PartnerTag": self.partner_tag,
            "PartnerType": "Associates",
            "Marketplace": self.MARKETPLACE,
            "SearchIndex": "All",
            "ItemCount": self.ITEM_COUNT,
        }
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")

        response = await self.fetcher.fetch(
            f"https://{self.API_HOST}{self.API_PATH}",
            headers=self.sign_request(body),
            timeout=settings.SCRAPER_LISTING_TIMEOUT_SECONDS,
            method="POST",
            content=body,
        )

        try:
            data = json.loads(response.body)
        except ValueError as e:
            raise ScraperError(f"Amazon API returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ScraperError("Amazon API returned an unexpected payload")

        if data.get("Errors"):
            error_msg = data["Errors"][0].get("Message", "Unknown error")
            raise ScraperError(f"Amazon API error: {error_msg}")

        listings = []
        for item in dig(data, "SearchResult", "Items") or []:
            listing = self.parse_item(item)
            if listing is not None:
                listings.append(listing)
        return listings

    def parse_item(self, item: Dict[str, Any]) -> Optional[ScrapedListing]:
        """Convert a PA-API SearchItems result into a listing.

        Returns:
            ScrapedListing, or None if the ASIN, title or price is missing
        """
        if not isinstance(item, dict):
            return None

        offers = dig(item, "Offers", "Listings") or []
        offer = offers[0] if offers and isinstance(offers[0], dict) else {}

        asin = item.get("ASIN")
        return self.build_listing(
            native_id=asin,
            title=dig(item, "ItemInfo", "Title", "DisplayValue"),
            current_price=coerce_price(dig(offer, "Price", "Amount")),
            product_url=item.get("DetailPageURL") or f"{self.base_url}/dp/{asin}",
            original_price=coerce_price(dig(offer, "SavingBasis", "Amount")),
            image_url=dig(item, "Images", "Primary", "Large", "URL"),
            brand=dig(item, "ItemInfo", "ByLineInfo", "Brand", "DisplayValue"),
            sku=asin,
        )

    def sign_request(self, body: bytes, now: Optional[datetime] = None) -> Dict[str, str]:
        """Generate AWS Signature Version 4 headers for a SearchItems call.

        Args:
            body: Exact request body bytes that will be sent
            now: Signing time (defaults to the current UTC time)

        Returns:
            Dictionary of headers including Authorization
        """
        t = now or datetime.now(timezone.utc)
        amz_date = t.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = t.strftime("%Y%m%d")

        payload_hash = hashlib.sha256(body).hexdigest()
        content_type = "application/json; charset=utf-8"

        canonical_headers = (
            f"content-type:{content_type}\n"
            f"host:{self.API_HOST}\n"
            f"x-amz-date:{amz_date}\n"
            f"x-amz-target:{self.API_TARGET}\n"
        )
        signed_headers = "content-type;host;x-amz-date;x-amz-target"
        canonical_request = "\n".join(
            ["POST", self.API_PATH, "", canonical_headers, signed_headers, payload_hash]
        )

        algorithm = "AWS4-HMAC-SHA256"
        credential_scope = f"{date_stamp}/{self.API_REGION}/{self.API_SERVICE}/aws4_request"
        string_to_sign = "\n".join(
            [
                algorithm,
                amz_date,
                credential_scope,
                hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
            ]
        )

        def sign(key: bytes, msg: str) -> bytes:
            return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()

        k_date = sign(f"AWS4{self.secret_key}".encode("utf-8"), date_stamp)
        k_region = sign(k_date, self.API_REGION)
        k_service = sign(k_region, self.API_SERVICE)
        k_signing = sign(k_service, "aws4_request")
        signature = hmac.new(k_signing, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

        return {
            "Authorization": (
                f"{algorithm} Credential={self.access_key}/{credential_scope}, "
                f"SignedHeaders={signed_headers}, Signature={signature}"
            ),
            "Content-Type": content_type,
            "Host": self.API_HOST,
            "X-Amz-Date": amz_date,
            "X-Amz-Target": self.API_TARGET,
            "Content-Encoding": "amz-1.0",
        }
