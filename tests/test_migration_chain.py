"""Sanity checks for Alembic migration ordering.

The revisions in ``cms_config/migrations/versions`` must form one linear
upgrade path: every ``down_revision`` points at a known file and exactly one
revision is left as head. Anything else breaks ``alembic upgrade head`` in the
test fixtures and on deploy.
"""

from __future__ import annotations

from pathlib import Path
import re


VERSIONS_DIR = Path(__file__).resolve().parents[1] / "cms_config" / "migrations" / "versions"

REVISION_RE = re.compile(r"^revision:\s*str\s*=\s*['\"]([^'\"]+)['\"]", re.MULTILINE)
DOWN_REVISION_RE = re.compile(r"^down_revision:[^=]*=\s*(.+)$", re.MULTILINE)


def _parse_revisions() -> dict[str, str | None]:
    revisions: dict[str, str | None] = {}
    for path in sorted(VERSIONS_DIR.glob("*.py")):
        text = path.read_text()

        revision_match = REVISION_RE.search(text)
        assert revision_match, f"Missing revision identifier in {path.name}"

        down_match = DOWN_REVISION_RE.search(text)
        assert down_match, f"Missing down_revision in {path.name}"
        quoted = re.search(r"['\"]([^'\"]+)['\"]", down_match.group(1))

        revisions[revision_match.group(1)] = quoted.group(1) if quoted else None

    return revisions


def test_revision_ids_match_file_names() -> None:
    for path in VERSIONS_DIR.glob("*.py"):
        match = REVISION_RE.search(path.read_text())
        assert match and match.group(1) == path.stem, f"{path.name} declares revision {match and match.group(1)}"


def test_migrations_form_single_chain() -> None:
    revisions = _parse_revisions()
    assert revisions, "No migrations found"

    roots = [rev for rev, down in revisions.items() if down is None]
    assert len(roots) == 1, f"Expected one base migration, found {roots}"

    missing = {down for down in revisions.values() if down and down not in revisions}
    assert not missing, f"Missing migration files referenced by down_revision: {missing}"

    referenced = {down for down in revisions.values() if down}
    heads = sorted(set(revisions) - referenced)
    assert len(heads) == 1, f"Multiple migration heads detected: {heads}"

    # Walk from head to base; every revision must be on the path
    seen: list[str] = []
    current: str | None = heads[0]
    while current:
        assert current not in seen, f"Cycle detected at {current}"
        seen.append(current)
        current = revisions[current]

    assert set(seen) == set(revisions), f"Unreachable migrations: {sorted(set(revisions) - set(seen))}"
