from __future__ import annotations

import uuid
from typing import Any, Dict, List, Protocol

from supabase import Client, create_client

from paynews.settings import Settings
from paynews.utils.time import utc_now_iso


class RecordStore(Protocol):
    def select_all(self) -> List[Dict]:
        raise NotImplementedError

    def insert(self, record: Dict) -> Dict:
        raise NotImplementedError

    def delete(self, record_id: str) -> None:
        raise NotImplementedError


class SupabaseRecordStore(RecordStore):
    def __init__(self, settings: Settings, client: Client | Any = None) -> None:
        self.table = settings.table
        if client is None:
            if not settings.supabase_url or not settings.supabase_key:
                raise RuntimeError(
                    "Missing Supabase settings. "
                    f"SUPABASE_URL: {'exists' if settings.supabase_url else 'missing'}, "
                    f"SUPABASE_KEY: {'exists' if settings.supabase_key else 'missing'}"
                )
            client = create_client(settings.supabase_url, settings.supabase_key)
        self.client = client

    def select_all(self) -> List[Dict]:
        response = self.client.table(self.table).select("*").order("created_at", desc=True).execute()
        return list(response.data or [])

    def insert(self, record: Dict) -> Dict:
        response = self.client.table(self.table).insert(record).execute()
        rows = response.data or []
        if not rows:
            raise RuntimeError(f"Supabase insert into {self.table} returned no rows.")
        return rows[0]

    def delete(self, record_id: str) -> None:
        self.client.table(self.table).delete().eq("id", record_id).execute()

    def check_connection(self) -> bool:
        try:
            self.client.table(self.table).select("id").limit(1).execute()
        except Exception as exc:
            print(f"[store] Supabase connection error: {exc}")
            return False
        print("[store] Supabase connection successful")
        return True


class MemoryRecordStore(RecordStore):
    def __init__(self, rows: List[Dict] | None = None) -> None:
        self.rows: List[Dict] = [dict(row) for row in rows or []]

    def select_all(self) -> List[Dict]:
        return sorted(
            (dict(row) for row in self.rows),
            key=lambda row: row.get("created_at") or "",
            reverse=True,
        )

    def insert(self, record: Dict) -> Dict:
        row = {**record, "id": str(uuid.uuid4()), "created_at": utc_now_iso()}
        self.rows.append(row)
        return dict(row)

    def delete(self, record_id: str) -> None:
        self.rows = [row for row in self.rows if row.get("id") != record_id]
