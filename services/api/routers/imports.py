# services/api/routers/imports.py
from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Dict, Iterator, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse

from adapters.base import StorageAdapter
from core.xlsx_parser import parse_marketplace_xlsx
from deps import get_storage_adapter
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["import"])

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]


def _event(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False) + "\n"


def import_events(data: Optional[bytes], storage: StorageAdapter, batch_size: int) -> Iterator[str]:
    """
    Progress events (one JSON object per line) for a marketplace export:
    parsing -> processing* -> checking_shipped -> done, or error.

    Each chunk of `batch_size` rows is committed on its own, so a failure
    midway keeps the chunks already written.
    """
    yield _event({"status": "parsing", "message": "Lendo arquivo..."})

    if not data:
        yield _event({"status": "error", "message": "Nenhum arquivo enviado"})
        return

    try:
        rows = parse_marketplace_xlsx(data)
    except Exception as e:
        logger.exception("Failed to parse import file")
        yield _event({"status": "error", "message": "Erro ao ler arquivo", "details": str(e)})
        return

    total = len(rows)
    if total == 0:
        yield _event({"status": "error", "message": "Nenhum pedido encontrado no arquivo"})
        return

    yield _event({
        "status": "processing",
        "message": f"Processando {total} pedidos...",
        "total": total,
        "processed": 0,
        "percent": 0,
    })

    created = 0
    updated = 0
    processed = 0
    try:
        for start in range(0, total, batch_size):
            chunk = rows[start:start + batch_size]
            c, u = storage.upsert_orders(chunk)
            created += c
            updated += u
            processed += len(chunk)
            yield _event({
                "status": "processing",
                "message": "Processando pedidos...",
                "total": total,
                "processed": processed,
                "percent": round(processed * 100 / total),
            })

        yield _event({"status": "checking_shipped", "message": "Verificando pedidos enviados..."})
        shipped = storage.mark_missing_as_shipped([r["marketplace_order_id"] for r in rows])
    except Exception as e:
        logger.exception(f"Import failed after {processed}/{total} rows")
        yield _event({
            "status": "error",
            "message": "Erro ao processar arquivo",
            "details": str(e),
            "processed": processed,
            "total": total,
        })
        return

    logger.info(f"Import done: created={created} updated={updated} shipped={shipped} total={total}")
    message = f"Importado! {created} novos, {updated} atualizados"
    if shipped:
        message += f", {shipped} enviados"
    yield _event({
        "status": "done",
        "message": message,
        "created": created,
        "updated": updated,
        "shipped": shipped,
        "total": total,
    })


@router.post("")
async def import_orders(storage: Storage, file: Optional[UploadFile] = File(None)):
    """
    Import the marketplace export (.xlsx) and stream progress as NDJSON.
    """
    data = await file.read() if file is not None else None
    batch_size = get_settings().import_batch_size
    return StreamingResponse(
        import_events(data, storage, batch_size),
        media_type="application/x-ndjson",
        headers={"Cache-Control": "no-cache"},
    )
