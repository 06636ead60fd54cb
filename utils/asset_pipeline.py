#!/usr/bin/env python3
"""Resolve, bundle and upload release assets.

Assets are processed one at a time in configured order. A failure on one
asset is logged with that asset's configuration and the pipeline moves on;
`upload_assets` itself never raises.
"""

from __future__ import annotations

import glob
import json
import os
import posixpath
import zipfile
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Protocol, Union

from configs.config import Config
from utils.host import ReleaseLog
from utils.release_models import AssetSpec

_MAGIC = ("*", "?", "[")


class AssetProcessingError(Exception):
    def __init__(self, message: str, asset: Any = None):
        super().__init__(message)
        self.asset = asset
        self.code = "ASSET"


class AssetUploader(Protocol):
    def upload_asset(self, release_id: int, file_path: str, file_name: str, label: Optional[str] = None) -> Any: ...


@dataclass
class PlannedUpload:
    """What one configured asset turns into: a file to upload and its sources."""

    name: str
    sources: List[str]
    label: Optional[str] = None
    zipped: bool = False


def normalize_asset(asset: Union[str, AssetSpec, dict]) -> AssetSpec:
    if isinstance(asset, AssetSpec):
        return asset
    if isinstance(asset, str):
        return AssetSpec(path=asset, type="file")
    return AssetSpec.model_validate(asset)


def resolve_files(pattern: str, cwd: Optional[str] = None) -> List[str]:
    """Expand a glob pattern to absolute paths of regular files, sorted."""
    root = cwd or os.getcwd()
    full = pattern if os.path.isabs(pattern) else os.path.join(root, pattern)
    matches = glob.glob(full, recursive=True)
    return sorted(os.path.abspath(m) for m in matches if os.path.isfile(m))


def pattern_base(pattern: str) -> str:
    """Leading directory segments of a pattern, up to the first wildcard segment."""
    parts = pattern.replace("\\", "/").split("/")
    base: List[str] = []
    for part in parts[:-1]:
        if any(ch in part for ch in _MAGIC):
            break
        base.append(part)
    joined = "/".join(base)
    if not joined and pattern.startswith("/"):
        return "/"
    return joined


def archive_name(file_path: str, base: str, cwd: Optional[str] = None) -> str:
    """Entry name for `file_path` inside a zip built from a pattern rooted at `base`.

    The entry keeps the base directory as its prefix so the archive mirrors the
    layout on disk, e.g. `dist/js/x.map` for pattern `dist/**/*.map`.
    """
    root = cwd or os.getcwd()
    base_abs = os.path.abspath(os.path.join(root, base)) if base else os.path.abspath(root)
    rel = os.path.relpath(file_path, base_abs).replace(os.sep, "/")
    prefix = posixpath.normpath(base.replace("\\", "/")) if base else ""
    if prefix.startswith("/") or prefix.startswith(".."):
        prefix = os.path.basename(base_abs)
    if prefix in ("", "."):
        return rel
    return posixpath.join(prefix, rel)


def zip_asset_name(spec: AssetSpec) -> str:
    return spec.name or f"{os.path.basename(spec.path.rstrip('/'))}.zip"


def temp_zip_path(temp_dir: str, name: str) -> str:
    """Staging path for a zip asset; always a direct child of `temp_dir`."""
    base = posixpath.basename(name.replace("\\", "/").rstrip("/"))
    if base in ("", ".", ".."):
        base = "asset.zip"
    return os.path.join(temp_dir, base)


def create_zip_archive(
    files: Iterable[str],
    output_path: str,
    base: str,
    *,
    cwd: Optional[str] = None,
    log: Optional[ReleaseLog] = None,
) -> int:
    """Write `files` into a deflate archive at `output_path`; return its size in bytes."""
    level = Config.get_asset_config()["compress_level"]
    with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED, compresslevel=level) as zf:
        for path in files:
            if os.path.isfile(path):
                zf.write(path, arcname=archive_name(path, base, cwd))
    size = os.path.getsize(output_path)
    if log:
        log.verbose(f"Zip archive created: {output_path} ({size} bytes)")
    return size


class AssetPipeline:
    def __init__(
        self,
        uploader: Optional[AssetUploader],
        log: ReleaseLog,
        *,
        cwd: Optional[str] = None,
        temp_dir: Optional[str] = None,
    ):
        self.uploader = uploader
        self.log = log
        self.cwd = cwd or os.getcwd()
        self.temp_dir = temp_dir or os.path.join(self.cwd, Config.get_asset_config()["temp_dir"])

    # -------- Planning (shared by real runs and dry runs) --------
    def plan(self, spec: AssetSpec) -> List[PlannedUpload]:
        files = resolve_files(spec.path, self.cwd)
        if not files:
            self.log.warn(f"No files matched: {spec.path}")
            return []
        if spec.type == "zip":
            return [PlannedUpload(name=zip_asset_name(spec), sources=files, label=spec.label, zipped=True)]
        return [
            PlannedUpload(name=spec.name or os.path.basename(f), sources=[f], label=spec.label)
            for f in files
        ]

    # -------- Execution --------
    def process_asset(self, release_id: int, spec: AssetSpec) -> None:
        for planned in self.plan(spec):
            if planned.zipped:
                self._upload_zip(release_id, spec, planned)
            else:
                self.uploader.upload_asset(release_id, planned.sources[0], planned.name, planned.label)
                self.log.info(f"✅ Asset uploaded: {planned.name}")

    def _upload_zip(self, release_id: int, spec: AssetSpec, planned: PlannedUpload) -> None:
        os.makedirs(self.temp_dir, exist_ok=True)
        zip_path = temp_zip_path(self.temp_dir, planned.name)
        try:
            create_zip_archive(planned.sources, zip_path, pattern_base(spec.path), cwd=self.cwd, log=self.log)
            self.uploader.upload_asset(release_id, zip_path, planned.name, planned.label)
            self.log.info(f"✅ Asset uploaded: {planned.name}")
        finally:
            try:
                if os.path.exists(zip_path):
                    os.remove(zip_path)
            except OSError as e:
                self.log.warn(f"Failed to clean up temporary file: {zip_path} ({e})")

    def upload_assets(self, release_id: int, assets: List[Union[str, AssetSpec, dict]]) -> None:
        if not assets:
            self.log.verbose("No assets configured, skipping upload")
            return

        self.log.info(f"Uploading {len(assets)} asset(s)...")
        for asset in assets:
            try:
                self.process_asset(release_id, normalize_asset(asset))
            except Exception as e:  # noqa: BLE001
                err = AssetProcessingError(f"Asset processing failed: {_describe(asset)}, error: {e}", asset)
                self.log.error(str(err))
        self.log.info("✅ All assets processed")

    def describe_uploads(self, assets: List[Union[str, AssetSpec, dict]]) -> List[PlannedUpload]:
        """Dry-run counterpart of `upload_assets`: log what would be uploaded."""
        planned_all: List[PlannedUpload] = []
        for asset in assets:
            try:
                planned = self.plan(normalize_asset(asset))
            except Exception as e:  # noqa: BLE001
                self.log.error(f"Asset processing failed: {_describe(asset)}, error: {e}")
                continue
            for p in planned:
                if p.zipped:
                    self.log.info(f"[dry-run] Would zip {len(p.sources)} file(s) and upload as {p.name}")
                else:
                    self.log.info(f"[dry-run] Would upload {p.sources[0]} as {p.name}")
            planned_all.extend(planned)
        return planned_all


def _describe(asset: Any) -> str:
    if isinstance(asset, AssetSpec):
        asset = asset.model_dump(exclude_none=True)
    try:
        return json.dumps(asset)
    except (TypeError, ValueError):
        return repr(asset)
