# core/supabase_store.py

from typing import Dict, Optional

from supabase import Client

from core.store import ChangeFeedStore, parent_collection
from core.utils import utc_now_iso


def is_duplicate_key(error: Exception) -> bool:
    error_msg = str(error).lower()
    return "duplicate" in error_msg or "unique" in error_msg


class SupabaseDocumentStore(ChangeFeedStore):
    """
    Keyed documents kept as rows of one Supabase table:

        path        text primary key
        collection  text (indexed)
        data        jsonb
        version     bigint not null default 1
        updated_at  timestamptz

    Writes are compare-and-set on `version`, so two API workers merging
    disjoint fields of the same document both land (the loser re-reads
    and merges again).

    Remote changes reach subscribers through refresh(), driven by the
    background scheduler.
    """

    def __init__(self, client: Client, table: str = "documents"):
        super().__init__()
        self.client = client
        self.table = table

    def _read_document(self, path: str) -> Optional[dict]:
        data, _ = self._read_versioned(path)
        return data

    def _read_versioned(self, path: str):
        result = (
            self.client.table(self.table)
            .select("path, data, version")
            .eq("path", path)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        if not rows:
            return None, None
        return rows[0]["data"], rows[0].get("version") or 1

    def _read_collection(self, collection_path: str) -> Dict[str, dict]:
        result = (
            self.client.table(self.table)
            .select("path, data")
            .eq("collection", collection_path)
            .execute()
        )
        return {row["path"]: row["data"] for row in (result.data or [])}

    def _compare_and_write(self, path: str, data: dict, version) -> bool:
        if version is None:
            try:
                (
                    self.client.table(self.table)
                    .insert({
                        "path": path,
                        "collection": parent_collection(path),
                        "data": data,
                        "version": 1,
                        "updated_at": utc_now_iso(),
                    })
                    .execute()
                )
            except Exception as e:
                # Created by another worker since our read
                if is_duplicate_key(e):
                    return False
                raise
            return True

        result = (
            self.client.table(self.table)
            .update({
                "data": data,
                "version": version + 1,
                "updated_at": utc_now_iso(),
            })
            .eq("path", path)
            .eq("version", version)
            .execute()
        )
        return bool(result.data)

    def _remove_document(self, path: str) -> None:
        self.client.table(self.table).delete().eq("path", path).execute()

    def ping(self) -> dict:
        """Simple connectivity check."""
        try:
            res = self.client.table(self.table).select("path").limit(1).execute()
            return {"service": "Supabase", "status": "ok", "rows_found": len(res.data or [])}
        except Exception as e:
            return {"service": "Supabase", "status": "error", "detail": str(e)}
