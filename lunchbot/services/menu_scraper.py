"""
Fetches the daily lunch-menu image from a KakaoTalk Plus Friend page.
The restaurant updates its profile image with the day's menu.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


class ScrapeError(Exception):
    """No menu image could be found or downloaded."""


@dataclass(frozen=True)
class MenuImage:
    url: str
    content: bytes
    content_type: str

    @property
    def extension(self) -> str:
        if "png" in self.content_type:
            return "png"
        return "jpg"


def find_image_url(html: str, base_url: str) -> Optional[str]:
    """Prefer og:image, else the first kakao CDN <img>."""
    soup = BeautifulSoup(html, "html.parser")

    og_image = soup.find("meta", property="og:image")
    if og_image and og_image.get("content"):
        return urljoin(base_url, og_image["content"])

    for img in soup.find_all("img", src=True):
        src = img["src"]
        if src.startswith("data:") or "blank.gif" in src:
            continue
        if "kakaocdn.net" in src or "profile" in src:
            return urljoin(base_url, src)
    return None


class KakaoMenuScraper:
    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 30):
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.timeout = timeout

    def fetch_menu_image(self, page_url: str) -> MenuImage:
        try:
            page = self.session.get(page_url, timeout=self.timeout)
            page.raise_for_status()
        except requests.RequestException as e:
            raise ScrapeError(f"Could not load {page_url}: {e}") from e

        image_url = find_image_url(page.text, page_url)
        if not image_url:
            raise ScrapeError(f"No menu image found on {page_url}")
        logger.info(f"Selected menu image: {image_url}")

        try:
            image = self.session.get(image_url, timeout=self.timeout)
            image.raise_for_status()
        except requests.RequestException as e:
            raise ScrapeError(f"Could not download {image_url}: {e}") from e

        return MenuImage(
            url=image_url,
            content=image.content,
            content_type=image.headers.get("Content-Type", "image/jpeg"),
        )
