"""Pick the newest alpine-minirootfs archive out of a mirror's HTML index.

Index pages are plain directory listings; every ``<a href>`` is a candidate.
Only names of the form ``alpine-minirootfs-<version>-<arch>.tar.gz`` whose
version parses as ``major.minor.patch[suffix]`` survive, and the maximum
under VersionKey ordering wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import List, Optional

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:[_\-]?([a-zA-Z0-9]+))?$")


@dataclass(frozen=True, order=True)
class VersionKey:
    major: int
    minor: int
    patch: int
    suffix: str = ""


@dataclass(frozen=True)
class CandidateEntry:
    key: VersionKey
    version: str
    href: str


class LinkParser(HTMLParser):
    """Collect href targets of anchor elements."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.links: List[str] = []

    def handle_starttag(self, tag, attrs):
        if tag != "a":
            return
        href = dict(attrs).get("href")
        if href:
            self.links.append(href)


def extract_links(html: str) -> List[str]:
    parser = LinkParser()
    parser.feed(html)
    parser.close()
    return parser.links


def parse_version_key(text: str) -> Optional[VersionKey]:
    m = _VERSION_RE.match(text)
    if not m:
        return None
    return VersionKey(
        major=int(m.group(1)),
        minor=int(m.group(2)),
        patch=int(m.group(3)),
        suffix=m.group(4) or "",
    )


def rootfs_pattern(arch: str) -> re.Pattern[str]:
    return re.compile(rf"^alpine-minirootfs-([\w.\-]+)-{re.escape(arch)}\.tar\.gz$")


def find_candidates(html: str, arch: str) -> List[CandidateEntry]:
    pattern = rootfs_pattern(arch)
    found: List[CandidateEntry] = []
    for href in extract_links(html):
        m = pattern.match(href)
        if not m:
            continue
        version = m.group(1)
        key = parse_version_key(version)
        if key is None:
            logger.debug("Ignoring %s: unparsable version %r", href, version)
            continue
        found.append(CandidateEntry(key=key, version=version, href=href))
    return found


def select_latest(html: str, arch: str) -> Optional[CandidateEntry]:
    candidates = sorted(find_candidates(html, arch), key=lambda c: c.key)
    logger.debug("Found %d rootfs candidates for %s", len(candidates), arch)
    if not candidates:
        return None
    return candidates[-1]
