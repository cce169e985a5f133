"""
(sender, recipient) pairs from raw email messages.

Only the header block (everything before the first blank line) is
scanned with regexes; bodies are never parsed. Messages can come from

  - a CSV with a `message` column (the Kaggle Enron emails.csv),
  - a local .tar.gz / .tgz archive of message files,
  - a directory tree of message files (maildir layout).

Unusable messages (no sender, no recipient after normalisation) are
counted and skipped; they never stop ingestion.
"""

import os
import re
import tarfile
from email.utils import formataddr, getaddresses
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd
from tqdm.auto import tqdm

from settings import AddressPolicy

EMAIL_RE = re.compile(r"^[\w.+'-]+@[\w.-]+\.[a-z]{2,}$", re.I)
_ADDR_SEARCH_RE = re.compile(r"[\w.+'-]+@[\w.-]+\.[a-z]{2,}", re.I)


def _header_re(names: str) -> re.Pattern:
    # Value runs until the next line that does not start with whitespace
    return re.compile(rf"^(?:{names})\s*:[ \t]*(.*?)(?=\n\S|\Z)", re.I | re.M | re.S)


_FROM_RE = _header_re("From")
_TO_RE = _header_re("To")
_CC_RE = _header_re("Cc|Bcc")


def header_block(raw: str) -> str:
    raw = raw.replace("\r\n", "\n")
    return raw.split("\n\n", 1)[0]


# ---------------------------------------------------------------------------
# Address normalisation
# ---------------------------------------------------------------------------

class AddressNormalizer:
    def __init__(self, policy: Optional[AddressPolicy] = None):
        self.policy = policy or AddressPolicy()
        self._domain_re = (
            re.compile(self.policy.domain_pattern, re.I)
            if self.policy.domain_pattern else None
        )

    @staticmethod
    def _addresses(header_values: Iterable[str]) -> Iterator[Tuple[str, str]]:
        for value in header_values:
            value = " ".join(value.split())
            parsed = [(n, a) for n, a in getaddresses([value]) if EMAIL_RE.match(a.strip())]
            if not parsed:
                # strict parsers reject headers like "a@x.com, b@x.com," outright
                parsed = [("", a) for a in _ADDR_SEARCH_RE.findall(value)]
            yield from parsed

    def normalize_all(self, header_values: Iterable[str]) -> List[str]:
        """Every valid address in the header values, normalised, in order, no duplicates."""
        out: List[str] = []
        for name, addr in self._addresses(header_values):
            addr = addr.strip()
            if not EMAIL_RE.match(addr):
                continue
            if self._domain_re is not None and not self._domain_re.search(addr):
                continue
            ident = addr if self.policy.strip_display_name else formataddr((name.strip(), addr))
            if self.policy.casefold:
                ident = ident.lower()
            if ident not in out:
                out.append(ident)
        return out


# ---------------------------------------------------------------------------
# Header → pairs
# ---------------------------------------------------------------------------

class EdgeExtractor:
    """Turns raw messages into (sender, recipient) pairs and keeps counters."""

    def __init__(self, policy: Optional[AddressPolicy] = None):
        self.normalizer = AddressNormalizer(policy)
        self.total_raw = 0
        self.total_ok = 0
        self.total_pairs = 0

    def parse(self, raw: str) -> Optional[Tuple[str, Tuple[str, ...]]]:
        """Return (sender, recipients) or None if the message is unusable."""
        head = header_block(raw)

        m = _FROM_RE.search(head)
        if not m:
            return None
        senders = self.normalizer.normalize_all([m.group(1)])
        if not senders:
            return None
        sender = senders[0]

        values = [t.group(1) for t in _TO_RE.finditer(head)]
        if self.normalizer.policy.include_cc:
            values += [c.group(1) for c in _CC_RE.finditer(head)]
        recipients = tuple(r for r in self.normalizer.normalize_all(values) if r != sender)
        if not recipients:
            return None
        return sender, recipients

    def pairs(self, messages: Iterable[str]) -> Iterator[Tuple[str, str]]:
        for raw in messages:
            self.total_raw += 1
            if not isinstance(raw, str):
                continue
            result = self.parse(raw)
            if result is None:
                continue
            sender, recipients = result
            self.total_ok += 1
            for r in recipients:
                self.total_pairs += 1
                yield sender, r


# ---------------------------------------------------------------------------
# Message sources
# ---------------------------------------------------------------------------

def iter_csv_messages(path, chunk_size: int = 20_000, progress: bool = False) -> Iterator[str]:
    reader = pd.read_csv(
        path,
        usecols=["message"],
        chunksize=chunk_size,
        dtype=str,
        engine="c",
        on_bad_lines="skip",
    )
    for chunk in tqdm(reader, desc="  Chunks", disable=not progress):
        for raw in chunk["message"]:
            if isinstance(raw, str):
                yield raw


def iter_tar_messages(path, progress: bool = False) -> Iterator[str]:
    with tarfile.open(path, "r:*") as tar:
        for member in tqdm(tar, desc="  Archive", disable=not progress):
            if not member.isfile():
                continue
            try:
                f = tar.extractfile(member)
                if f is None:
                    continue
                data = f.read()
            except (OSError, tarfile.TarError):
                continue
            yield data.decode("utf-8", errors="replace")


def iter_dir_messages(path, progress: bool = False) -> Iterator[str]:
    files = sorted(p for p in Path(path).rglob("*") if p.is_file())
    for p in tqdm(files, desc="  Files", disable=not progress):
        try:
            yield p.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue


def iter_messages(source, csv_chunk_size: int = 20_000, progress: bool = False) -> Iterator[str]:
    """Pick the reader by source type: directory, tar archive or CSV."""
    if os.path.isdir(source):
        return iter_dir_messages(source, progress=progress)
    name = str(source).lower()
    if name.endswith((".tar", ".tgz", ".tar.gz", ".tar.bz2", ".tar.xz")):
        return iter_tar_messages(source, progress=progress)
    return iter_csv_messages(source, chunk_size=csv_chunk_size, progress=progress)


def reservoir_sample(messages: Iterable[str], k: int, seed: int = 42) -> List[str]:
    """Uniform random sample of k messages in one pass, returned shuffled."""
    rng = np.random.default_rng(seed)
    sample: List[str] = []
    for count, raw in enumerate(messages, start=1):
        if len(sample) < k:
            sample.append(raw)
        else:
            j = int(rng.integers(0, count))
            if j < k:
                sample[j] = raw
    rng.shuffle(sample)
    return sample
