"""
Local file cache for FRED API data.

Avoids refetching the same series on every rerun of the replication.
Cache files are stored as Parquet, indexed by a JSON metadata file.
"""

from __future__ import annotations

import hashlib
import json
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import polars as pl

from .data import FREDDataFetcher, SeriesRequest


def get_default_cache_dir() -> Path:
    """Get the default cache directory."""
    cache_home = os.environ.get("XDG_CACHE_HOME", os.path.expanduser("~/.cache"))
    return Path(cache_home) / "labor_tightness" / "fred_cache"


class FREDCache:
    """
    Local file cache for FRED data.

    Stores fetched observations as Parquet files with metadata for
    cache invalidation.
    """

    def __init__(
        self,
        cache_dir: Optional[str | Path] = None,
        max_age_hours: int = 24,
    ):
        """
        Initialize the FRED cache.

        Args:
            cache_dir: Directory to store cache files. Defaults to ~/.cache/labor_tightness/fred_cache
            max_age_hours: Maximum age of cached data in hours before refresh
        """
        self.cache_dir = Path(cache_dir) if cache_dir else get_default_cache_dir()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.max_age_hours = max_age_hours
        self.metadata_file = self.cache_dir / "cache_metadata.json"
        self._metadata = self._load_metadata()

    def _load_metadata(self) -> dict:
        """Load cache metadata from disk."""
        if self.metadata_file.exists():
            try:
                with open(self.metadata_file, "r") as f:
                    return json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                print(f"Warning: Ignoring unreadable cache metadata {self.metadata_file}: {e}")
                return {}
        return {}

    def _save_metadata(self):
        """Save cache metadata to disk."""
        with open(self.metadata_file, "w") as f:
            json.dump(self._metadata, f, indent=2, default=str)

    def _get_cache_key(self, request: SeriesRequest, aggregation_method: str = "avg") -> str:
        """Generate a unique cache key for a query."""
        key_str = f"{request.series_id}_{request.frequency}_{request.units}_{aggregation_method}"
        return hashlib.md5(key_str.encode()).hexdigest()[:16]

    def _get_cache_path(self, cache_key: str) -> Path:
        """Get the file path for a cache key."""
        return self.cache_dir / f"{cache_key}.parquet"

    def is_valid(self, request: SeriesRequest, aggregation_method: str = "avg") -> bool:
        """Check if cached data exists and has not expired."""
        cache_key = self._get_cache_key(request, aggregation_method)

        if cache_key not in self._metadata:
            return False

        cached_time = datetime.fromisoformat(self._metadata[cache_key]["cached_at"])
        if datetime.now() - cached_time >= timedelta(hours=self.max_age_hours):
            return False

        return self._get_cache_path(cache_key).exists()

    def load(self, request: SeriesRequest, aggregation_method: str = "avg") -> Optional[pl.DataFrame]:
        """
        Load data from cache if valid.

        Returns:
            Cached DataFrame or None on a miss
        """
        if not self.is_valid(request, aggregation_method):
            return None

        cache_path = self._get_cache_path(self._get_cache_key(request, aggregation_method))

        try:
            return pl.read_parquet(cache_path)
        except (OSError, pl.exceptions.PolarsError) as e:
            print(f"Warning: Failed to read cache file {cache_path}: {e}")
            return None

    def save(self, request: SeriesRequest, data: pl.DataFrame, aggregation_method: str = "avg"):
        """Save observations for a request to the cache."""
        cache_key = self._get_cache_key(request, aggregation_method)
        cache_path = self._get_cache_path(cache_key)

        data.write_parquet(cache_path)

        self._metadata[cache_key] = {
            "series_id": request.series_id,
            "frequency": request.frequency,
            "units": request.units,
            "aggregation_method": aggregation_method,
            "cached_at": datetime.now().isoformat(),
            "rows": data.height,
        }
        self._save_metadata()

    def clear(self, series_id: Optional[str] = None):
        """
        Clear cache entries.

        Args:
            series_id: If provided, clear only entries for this series.
                       If None, clear all cache entries.
        """
        keys_to_remove = [
            key for key, meta in self._metadata.items()
            if series_id is None or meta.get("series_id") == series_id
        ]
        for key in keys_to_remove:
            cache_path = self._get_cache_path(key)
            if cache_path.exists():
                cache_path.unlink()
            del self._metadata[key]

        self._save_metadata()

    def get_stats(self) -> dict:
        """Get cache statistics."""
        total_size = sum(
            self._get_cache_path(key).stat().st_size
            for key in self._metadata
            if self._get_cache_path(key).exists()
        )

        return {
            "cache_dir": str(self.cache_dir),
            "total_entries": len(self._metadata),
            "total_size_mb": total_size / (1024 * 1024),
            "max_age_hours": self.max_age_hours,
        }


class CachedFREDFetcher(FREDDataFetcher):
    """
    FRED data fetcher with local file caching.

    Extends FREDDataFetcher to add transparent caching of fetched data.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        cache_dir: Optional[str | Path] = None,
        max_age_hours: int = 24,
        **kwargs,
    ):
        super().__init__(api_key, **kwargs)
        self.cache = FREDCache(cache_dir=cache_dir, max_age_hours=max_age_hours)

    def fetch_series(self, request: SeriesRequest) -> pl.DataFrame:
        """Fetch a single series, serving it from the cache when fresh."""
        cached = self.cache.load(request, self.aggregation_method)
        if cached is not None:
            return cached

        df = super().fetch_series(request)
        self.cache.save(request, df, self.aggregation_method)
        return df

    def get_cache_stats(self) -> dict:
        """Get cache statistics."""
        return self.cache.get_stats()

    def clear_cache(self, series_id: Optional[str] = None):
        """Clear cache entries, optionally for a single series."""
        self.cache.clear(series_id)
