"""
Upstream Client - Fetches the official PKGBUILD from the Arch packaging GitLab
"""

import logging
from pathlib import Path

import requests

from pkgbuild_custom.common.errors import UpstreamError

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Reads raw files of an Arch packaging repository over HTTPS"""

    def __init__(self, base_url: str, timeout: int = 30, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def descriptor_url(self, package_name: str, ref: str = "main", descriptor_name: str = "PKGBUILD") -> str:
        return f"{self.base_url}/{package_name}/-/raw/{ref}/{descriptor_name}"

    def fetch_descriptor(self, package_name: str, ref: str = "main", descriptor_name: str = "PKGBUILD") -> str:
        """
        Download the upstream descriptor text

        Args:
            package_name: Package repository name, e.g. "hyprland"
            ref: Branch, tag or commit
            descriptor_name: File to fetch from the repository root

        Raises:
            UpstreamError: on network errors, HTTP errors or an empty file
        """
        url = self.descriptor_url(package_name, ref, descriptor_name)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"fetching {url} failed: {e}")

        text = response.text
        if not text.strip():
            raise UpstreamError(f"{url} returned an empty {descriptor_name}")

        logger.debug(f"✅ Fetched upstream {descriptor_name} for {package_name}@{ref} ({len(text)} bytes)")
        return text

    def sync_descriptor(self, target_dir: Path, package_name: str, ref: str = "main",
                        descriptor_name: str = "PKGBUILD") -> Path:
        """Replace target_dir/PKGBUILD with the upstream version and return its path"""
        text = self.fetch_descriptor(package_name, ref, descriptor_name)
        target_dir = Path(target_dir)
        target = target_dir / descriptor_name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding='utf-8')
        except OSError as e:
            raise UpstreamError(f"cannot write {target}: {e}")

        logger.info(f"Synchronized {target} from {package_name}@{ref}")
        return target
