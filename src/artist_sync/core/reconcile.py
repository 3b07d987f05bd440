"""
Reconciliation of the Last.fm library against the local artist catalog.

Pages are fetched and processed concurrently. Every page worker shares
one ArtistSnapshot; the decide / enrich / write / commit sequence for a
given artist name runs while that name is claimed, so two pages that both
list the same artist cannot both treat it as new.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from ..integrations.lastfm.client import LastFmClient
from ..integrations.spotify.search import SpotifySearchClient
from ..storage.artists import ArtistStore
from ..utils.parsing import parse_unsigned
from .exceptions import (
    ArtistSyncError,
    EnrichmentError,
    PageError,
    RecordParseError,
    StoreError,
)
from .models import Artist, PageReport, ReconcileResult

logger = logging.getLogger(__name__)


class ArtistOutcome(Enum):
    """What reconciling one artist record did."""

    ADDED = "added"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


def parse_artist_record(record: Any) -> Tuple[str, int]:
    """
    Read name and playcount from a raw Last.fm artist record.

    Raises:
        RecordParseError: If either field is missing or playcount is not
            an unsigned integer string
    """
    if not isinstance(record, dict):
        raise RecordParseError(f"Artist record is not an object: {record!r}")

    name = record.get("name")
    if not isinstance(name, str) or not name:
        raise RecordParseError(f"Artist record has no name: {record!r}")

    raw_playcount = record.get("playcount")
    if raw_playcount is None:
        raise RecordParseError(f"Artist {name!r} has no playcount")

    try:
        playcount = parse_unsigned(raw_playcount)
    except ValueError as e:
        raise RecordParseError(
            f"Failed to parse playcount for artist {name!r}: {raw_playcount!r}"
        ) from e

    return name, playcount


class ArtistSnapshot:
    """
    In-memory view of the artists already persisted.

    The mapping is guarded by one lock. On top of it, claim() hands out
    exclusive ownership of a single name; entries only change through
    commit(), which callers invoke after the store write succeeded.
    """

    def __init__(self, artists: Optional[Dict[str, Artist]] = None):
        self._artists: Dict[str, Artist] = dict(artists or {})
        self._lock = threading.Lock()
        self._name_locks: Dict[str, threading.Lock] = {}

    @contextmanager
    def claim(self, name: str) -> Iterator[None]:
        """Hold exclusive ownership of name for the duration of the block."""
        with self._lock:
            name_lock = self._name_locks.setdefault(name, threading.Lock())
        with name_lock:
            yield

    def get(self, name: str) -> Optional[Artist]:
        with self._lock:
            return self._artists.get(name)

    def commit(self, artist: Artist) -> None:
        """Record an artist that has been durably written."""
        with self._lock:
            self._artists[artist.name] = artist

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._artists

    def __len__(self) -> int:
        with self._lock:
            return len(self._artists)


class ReconciliationEngine:
    """Applies Last.fm playcount deltas to the artist store."""

    def __init__(
        self,
        store: ArtistStore,
        fetcher: LastFmClient,
        enrichment: SpotifySearchClient,
        max_workers: int = 0,
    ):
        self.store = store
        self.fetcher = fetcher
        self.enrichment = enrichment
        self.max_workers = max_workers
        self.snapshot = ArtistSnapshot()

    def load_snapshot(self) -> ArtistSnapshot:
        """Replace the snapshot with the current contents of the store."""
        self.store.create_schema()
        self.snapshot = ArtistSnapshot(self.store.load_all())
        logger.info(f"Loaded {len(self.snapshot)} existing artists")
        return self.snapshot

    def run(self) -> ReconcileResult:
        """
        Reconcile every page of the remote library.

        One worker per page unless max_workers caps the pool. A failing
        page is logged and counted; it does not stop the other pages.

        Raises:
            FetchError: If the page count cannot be determined
            StoreError: If the existing artists cannot be loaded
        """
        self.load_snapshot()
        total_pages = self.fetcher.get_total_pages()
        result = ReconcileResult(total_pages=total_pages)

        if total_pages == 0:
            logger.info("Remote library is empty, nothing to reconcile")
            return result

        workers = min(self.max_workers or total_pages, total_pages)
        logger.info(f"Processing {total_pages} pages with {workers} workers")

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="artist-page"
        ) as executor:
            future_to_page = {
                executor.submit(self.process_page, page): page
                for page in range(1, total_pages + 1)
            }

            for future in as_completed(future_to_page):
                page = future_to_page[future]
                try:
                    report = future.result()
                except Exception as e:
                    error = e if isinstance(e, PageError) else PageError(page, e)
                    logger.error(f"Error processing artists for page {page}: {error.cause}")
                    result.record_page_failure(str(error))
                    continue

                result.merge(report)

        logger.info(str(result))
        return result

    def process_page(self, page: int) -> PageReport:
        """Fetch one page and reconcile its records in order."""
        try:
            records = self.fetcher.fetch_page(page)
        except ArtistSyncError as e:
            raise PageError(page, e) from e

        report = PageReport(page=page)
        for record in records:
            self._process_record(record, report)

        logger.debug(
            f"Page {page}: {report.processed} reconciled ({report.added} added, "
            f"{report.updated} updated, {report.unchanged} unchanged), "
            f"{report.skipped} skipped, {report.failed} failed"
        )
        return report

    def _process_record(self, record: Any, report: PageReport) -> None:
        try:
            name, playcount = parse_artist_record(record)
        except RecordParseError as e:
            logger.warning(str(e))
            report.skipped += 1
            report.errors.append(str(e))
            return

        try:
            outcome = self.reconcile_artist(name, playcount)
        except (EnrichmentError, StoreError) as e:
            logger.error(f"Error processing artist {name!r}: {e}")
            report.failed += 1
            report.errors.append(str(e))
            return

        if outcome is ArtistOutcome.ADDED:
            report.added += 1
        elif outcome is ArtistOutcome.UPDATED:
            report.updated += 1
        else:
            report.unchanged += 1

    def reconcile_artist(self, name: str, playcount: int) -> ArtistOutcome:
        """
        Bring one artist up to date.

        New artists are enriched with a seed; known artists keep their
        seed and only take the new playcount. The snapshot is updated
        after the store write, all while the name is claimed.
        """
        with self.snapshot.claim(name):
            known = self.snapshot.get(name)
            if known is not None and known.playcount == playcount:
                return ArtistOutcome.UNCHANGED

            if known is None:
                seed = self.enrichment.lookup_seed(name)
            else:
                seed = known.seed

            artist = Artist(name=name, playcount=playcount, seed=seed)
            self.store.upsert(name, playcount, seed)
            self.snapshot.commit(artist)

        if known is None:
            logger.info(f"Added artist: {name} with playcount: {playcount} and seed: {seed}")
            if not artist.is_seeded:
                logger.warning(f"No catalog match for new artist {name}, stored without seed")
            return ArtistOutcome.ADDED

        logger.info(
            f"Playcount updated for artist {name}: {known.playcount} -> {playcount}"
        )
        return ArtistOutcome.UPDATED
