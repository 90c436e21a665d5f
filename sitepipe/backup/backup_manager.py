#!/usr/bin/env python3
"""
Backup Manager

Versioned backups of website content.

Each backup is an immutable, timestamped folder:

    content/backups/
        versions.json               {current, versions[]} newest first
        backup_ledger.jsonl         one line per create/restore/cleanup
        backup-2024-10-31T10-30-00-000Z/
            manifest.json           per-file path/size/md5/modified + totalSize
            data/                   copy of content/data
            templates/              copy of content/templates
            public/                 *.html, sitemap.xml, robots.txt from public/

Usage:
    python -m sitepipe.backup.backup_manager create "Before major update"
    python -m sitepipe.backup.backup_manager restore backup-2024-10-31T10-30-00-000Z
    python -m sitepipe.backup.backup_manager list
    python -m sitepipe.backup.backup_manager compare <id1> <id2>
    python -m sitepipe.backup.backup_manager cleanup 3
    python -m sitepipe.backup.backup_manager verify <id>
"""

import argparse
import hashlib
import json
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sitepipe.common.files import (
    append_jsonl,
    format_bytes,
    get_utc_now,
    load_json,
    load_json_required,
    utc_iso,
    write_json,
)
from sitepipe.common.layout import SiteLayout
from sitepipe.config.config_loader import ConfigLoader, load_env

# =============================================================================
# CONFIGURATION
# =============================================================================

BACKUP_PREFIX = "backup-"
MANIFEST_FILE = "manifest.json"
VERSIONS_FILE = "versions.json"
LEDGER_FILE = "backup_ledger.jsonl"

DEFAULT_RETENTION = 10
DEFAULT_CLEANUP_KEEP = 5

# Files copied from public/ besides *.html
PUBLIC_EXTRA_FILES = {"sitemap.xml", "robots.txt"}


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def md5_hex(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


def make_backup_id(now: datetime = None) -> str:
    """backup-<ISO timestamp> with ':' and '.' replaced by '-'."""
    stamp = utc_iso(now).replace(":", "-").replace(".", "-")
    return f"{BACKUP_PREFIX}{stamp}"


def _ignore_non_public(directory: str, names: list) -> set:
    """shutil.copytree ignore hook: keep subdirectories, HTML, sitemap and robots."""
    ignored = set()
    for name in names:
        path = Path(directory) / name
        if path.is_dir():
            continue
        if name.endswith(".html") or name in PUBLIC_EXTRA_FILES:
            continue
        ignored.add(name)
    return ignored


class BackupError(Exception):
    """Raised when a backup cannot be created."""
    pass


# =============================================================================
# BACKUP MANAGER
# =============================================================================


class BackupManager:
    """Creates, restores, compares and prunes content backups."""

    def __init__(self, layout: SiteLayout = None, config: Optional[ConfigLoader] = None):
        self.layout = layout or SiteLayout()
        self.backup_dir = self.layout.backups_dir
        self.versions_file = self.backup_dir / VERSIONS_FILE
        self.ledger_file = self.backup_dir / LEDGER_FILE

        content_config = config.section("content") if config else {}
        self.retention = int(content_config.get("backupRetention", DEFAULT_RETENTION))
        self.cleanup_keep = int(content_config.get("cleanupKeep", DEFAULT_CLEANUP_KEEP))

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        self.versions = self.load_versions()

    # -------------------------------------------------------------------------
    # versions.json
    # -------------------------------------------------------------------------

    def load_versions(self) -> dict:
        try:
            versions = load_json(self.versions_file)
        except json.JSONDecodeError as e:
            print(f"  ⚠ Error loading versions ({e}); starting a new version history")
            versions = {}
        versions.setdefault("current", None)
        versions.setdefault("versions", [])
        return versions

    def save_versions(self):
        write_json(self.versions_file, self.versions)

    def _log(self, action: str, **fields):
        append_jsonl(self.ledger_file, {"timestamp": utc_iso(), "action": action, **fields})

    def backup_path(self, backup_id: str) -> Path:
        """Resolve a backup id to its folder; rejects ids that escape the backup dir."""
        root = self.backup_dir.resolve()
        path = (self.backup_dir / backup_id).resolve()
        if path.parent != root or not backup_id.startswith(BACKUP_PREFIX):
            raise ValueError(f"Invalid backup id: {backup_id}")
        return path

    # -------------------------------------------------------------------------
    # Manifest
    # -------------------------------------------------------------------------

    def generate_manifest(self, backup_path: Path) -> dict:
        manifest = {
            "id": backup_path.name,
            "timestamp": utc_iso(),
            "files": [],
            "totalSize": 0,
        }
        for file_path in sorted(p for p in backup_path.rglob("*") if p.is_file()):
            rel_path = file_path.relative_to(backup_path).as_posix()
            if rel_path == MANIFEST_FILE:
                continue
            stat = file_path.stat()
            manifest["files"].append({
                "path": rel_path,
                "size": stat.st_size,
                "hash": md5_hex(file_path.read_bytes()),
                "modified": utc_iso(datetime.fromtimestamp(stat.st_mtime, timezone.utc)),
            })
            manifest["totalSize"] += stat.st_size
        return manifest

    def load_manifest(self, backup_id: str) -> dict:
        path = self.backup_path(backup_id) / MANIFEST_FILE
        if not path.exists():
            raise FileNotFoundError(f"Backup not found: {backup_id}")
        return load_json_required(path)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def _new_backup_path(self) -> Path:
        backup_id = make_backup_id(get_utc_now())
        path = self.backup_dir / backup_id
        suffix = 1
        while path.exists():
            path = self.backup_dir / f"{backup_id}-{suffix}"
            suffix += 1
        return path

    def _copy_into(self, backup_path: Path):
        if self.layout.data_dir.exists():
            shutil.copytree(self.layout.data_dir, backup_path / "data")
        if self.layout.templates_dir.exists():
            shutil.copytree(self.layout.templates_dir, backup_path / "templates")
        if self.layout.public_dir.exists():
            shutil.copytree(self.layout.public_dir, backup_path / "public", ignore=_ignore_non_public)

    def create_backup(self, description: str = "Manual backup", protect: tuple = ()) -> str:
        """Snapshot data/, templates/ and public HTML. Returns the backup id."""
        backup_path = self._new_backup_path()
        backup_id = backup_path.name
        print(f"Creating backup: {backup_id}")

        backup_path.mkdir(parents=True)
        try:
            self._copy_into(backup_path)
            manifest = self.generate_manifest(backup_path)
            write_json(backup_path / MANIFEST_FILE, manifest)
        except OSError as e:
            shutil.rmtree(backup_path, ignore_errors=True)
            raise BackupError(f"Backup {backup_id} failed: {e}") from e

        version = {
            "id": backup_id,
            "timestamp": utc_iso(),
            "description": description,
            "hash": md5_hex(json.dumps(manifest, indent=2).encode("utf-8")),
            "files": len(manifest["files"]),
            "size": manifest["totalSize"],
        }
        self.versions["versions"].insert(0, version)
        self.versions["current"] = backup_id

        removed = self._prune(self.retention, protect=set(protect) | {backup_id})
        self.save_versions()
        self._log("create", backup_id=backup_id, description=description,
                  files=version["files"], size=version["size"], pruned=removed)

        print(f"  ✓ Backup created: {backup_id}")
        print(f"    Files: {version['files']}")
        print(f"    Size:  {format_bytes(version['size'])}")
        return backup_id

    def _prune(self, keep: int, protect: set = frozenset()) -> list:
        """Drop versions beyond `keep` (protected ids are always kept). Returns removed ids."""
        kept, dropped = [], []
        for version in self.versions["versions"]:
            if len(kept) < keep or version["id"] in protect:
                kept.append(version)
            else:
                dropped.append(version)
        self.versions["versions"] = kept

        removed = []
        for version in dropped:
            path = self.backup_dir / version["id"]
            if path.exists():
                shutil.rmtree(path)
                removed.append(version["id"])
                print(f"  Removed old backup: {version['id']}")

        kept_ids = {v["id"] for v in kept}
        if self.versions["current"] not in kept_ids:
            self.versions["current"] = kept[0]["id"] if kept else None
        return removed

    # -------------------------------------------------------------------------
    # Restore
    # -------------------------------------------------------------------------

    def restore_backup(self, backup_id: str, safety_backup: bool = True) -> str:
        """
        Copy a backup back over content/data, content/templates and public/.

        A pre-restore backup of the current state is taken first unless
        safety_backup is False. Files added since the backup are not deleted.
        Returns the pre-restore backup id ("" when skipped).
        """
        backup_path = self.backup_path(backup_id)
        if not backup_path.exists():
            raise FileNotFoundError(f"Backup not found: {backup_id}")

        print(f"Restoring backup: {backup_id}")

        pre_restore_id = ""
        if safety_backup:
            pre_restore_id = self.create_backup(f"Pre-restore backup before {backup_id}", protect=(backup_id,))

        targets = [
            (backup_path / "data", self.layout.data_dir),
            (backup_path / "templates", self.layout.templates_dir),
            (backup_path / "public", self.layout.public_dir),
        ]
        for source, destination in targets:
            if source.exists():
                shutil.copytree(source, destination, dirs_exist_ok=True)

        self.versions["current"] = backup_id
        self.save_versions()
        self._log("restore", backup_id=backup_id, pre_restore_backup_id=pre_restore_id or None)

        print(f"  ✓ Backup restored: {backup_id}")
        return pre_restore_id

    # -------------------------------------------------------------------------
    # List / compare / verify / cleanup
    # -------------------------------------------------------------------------

    def list_backups(self) -> list:
        return list(self.versions["versions"])

    def compare_backups(self, backup_id1: str, backup_id2: str) -> dict:
        """Files added (only in id2), deleted (only in id1) and modified (hash differs)."""
        files1 = {f["path"]: f for f in self.load_manifest(backup_id1).get("files", [])}
        files2 = {f["path"]: f for f in self.load_manifest(backup_id2).get("files", [])}

        changes = {"added": [], "deleted": [], "modified": []}
        for path in sorted(set(files1) | set(files2)):
            if path not in files1:
                changes["added"].append(path)
            elif path not in files2:
                changes["deleted"].append(path)
            elif files1[path]["hash"] != files2[path]["hash"]:
                changes["modified"].append(path)
        return changes

    def verify_backup(self, backup_id: str) -> dict:
        """Re-hash backup files against the manifest."""
        backup_path = self.backup_path(backup_id)
        manifest = self.load_manifest(backup_id)
        result = {"missing": [], "corrupted": []}
        for entry in manifest.get("files", []):
            path = backup_path / entry["path"]
            if not path.exists():
                result["missing"].append(entry["path"])
            elif md5_hex(path.read_bytes()) != entry["hash"]:
                result["corrupted"].append(entry["path"])
        return result

    def cleanup_old_backups(self, keep: int = None) -> list:
        """Keep the newest `keep` backups, delete the rest. Returns removed ids."""
        keep = self.cleanup_keep if keep is None else keep
        if keep < 0:
            raise ValueError(f"keep must be >= 0, got {keep}")

        print(f"Cleaning up old backups (keeping {keep})...")
        if len(self.versions["versions"]) <= keep:
            print("  No cleanup needed.")
            return []

        removed = self._prune(keep)
        self.save_versions()
        self._log("cleanup", keep=keep, removed=removed)
        print(f"  ✓ Cleanup completed. Removed {len(removed)} old backups.")
        return removed


# =============================================================================
# CLI
# =============================================================================


def print_backups(manager: BackupManager):
    versions = manager.list_backups()
    if not versions:
        print("No backups found.")
        return
    for index, version in enumerate(versions, start=1):
        marker = "→" if version["id"] == manager.versions["current"] else " "
        print(f"{marker} {index}. {version['id']}")
        print(f"   Date: {version.get('timestamp')}")
        print(f"   Description: {version.get('description')}")
        print(f"   Files: {version.get('files', 0)}, Size: {format_bytes(version.get('size', 0))}")
        print()


def print_changes(changes: dict):
    total = sum(len(paths) for paths in changes.values())
    if total == 0:
        print("  ✓ No differences found between backups.")
        return
    print(f"Found {total} differences:")
    print()
    for label, key in (("Added", "added"), ("Deleted", "deleted"), ("Modified", "modified")):
        if changes[key]:
            print(f"{label} files ({len(changes[key])}):")
            for path in changes[key]:
                print(f"   {path}")
            print()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Manage website content backups")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a new backup")
    create.add_argument("description", nargs="?", default="Manual backup")
    restore = sub.add_parser("restore", help="Restore from backup")
    restore.add_argument("backup_id")
    restore.add_argument("--no-safety-backup", action="store_true", help="Skip the pre-restore backup")
    sub.add_parser("list", help="List all backups")
    compare = sub.add_parser("compare", help="Compare two backups")
    compare.add_argument("backup_id1")
    compare.add_argument("backup_id2")
    cleanup = sub.add_parser("cleanup", help="Remove old backups")
    cleanup.add_argument("keep", nargs="?", type=int, help="Backups to keep (default from config, 5)")
    verify = sub.add_parser("verify", help="Check backup files against the manifest")
    verify.add_argument("backup_id")

    parser.add_argument("--env", help="Environment config to use (default: SITE_ENV or development)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    load_env()

    print("=" * 70)
    print(f"BACKUP MANAGER - {args.command.upper()}")
    print("=" * 70)
    print()

    try:
        config = ConfigLoader(args.env)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    manager = BackupManager(SiteLayout.from_env(), config)

    try:
        if args.command == "create":
            manager.create_backup(args.description)
        elif args.command == "restore":
            manager.restore_backup(args.backup_id, safety_backup=not args.no_safety_backup)
        elif args.command == "list":
            print_backups(manager)
        elif args.command == "compare":
            print(f"Comparing backups: {args.backup_id1} vs {args.backup_id2}")
            print()
            print_changes(manager.compare_backups(args.backup_id1, args.backup_id2))
        elif args.command == "cleanup":
            manager.cleanup_old_backups(args.keep)
        elif args.command == "verify":
            result = manager.verify_backup(args.backup_id)
            for path in result["missing"]:
                print(f"  ✗ Missing: {path}")
            for path in result["corrupted"]:
                print(f"  ✗ Hash mismatch: {path}")
            if result["missing"] or result["corrupted"]:
                sys.exit(1)
            print(f"  ✓ All files match manifest for {args.backup_id}")
    except (FileNotFoundError, ValueError, BackupError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print()
    print("Done.")


if __name__ == "__main__":
    main()
