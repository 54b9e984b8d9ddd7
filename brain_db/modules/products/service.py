from supabase import Client
from brain_db.modules.products.schemas import (
    ProductSaveRequest, ProductSaveAllRequest, CaptureCreate, CaptureResponse
)
from brain_db.modules.extraction.parsing import parse_price_response, to_number
from brain_db.modules.extraction.prompts import build_price_prompt
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import base64
import re
import uuid
import logging

logger = logging.getLogger(__name__)

PRICE_FIELDS = (
    "haendler_preis",
    "haendler_preis_pro_einheit",
    "alternative_retailer_price",
    "alternative_retailer_price_per_unit",
)
CAPTURE_COUNTRY = "Deutschland"
PRODUCT_FILES_BUCKET = "productfiles"
_DATA_URI = re.compile(r"^data:([A-Za-z0-9.+/-]+);base64,(.+)$", re.S)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def convert_price_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Price columns as numbers; blank or unparseable values become None."""
    converted = dict(data)
    for field in PRICE_FIELDS:
        if field in converted:
            converted[field] = to_number(converted[field])
    return converted


def column_fields(data: Dict[str, Any], column: str) -> Dict[str, Any]:
    prefix = f"{column.lower()}_"
    return {k: v for k, v in data.items() if k.startswith(prefix)}


class ProductService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _find(self, product_id: str, columns: str = "*") -> Optional[Dict[str, Any]]:
        result = self.supabase.table("products").select(columns).eq("id", product_id).limit(1).execute()
        return result.data[0] if result.data else None

    def _insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.supabase.table("products").insert(data).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="No data returned from database operation")
        return result.data[0]

    def _update(self, product_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.supabase.table("products").update(data).eq("id", product_id).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="No data returned from database operation")
        return result.data[0]

    def save(self, request: ProductSaveRequest) -> Dict[str, Any]:
        """Create or update a product.

        A column analysis only touches the keys of that column; anything else
        is a full update. Unknown product ids are created.
        """
        if request.data is None or not isinstance(request.data, dict):
            raise HTTPException(status_code=400, detail="Invalid data provided")
        try:
            now = _now()
            enriched = {**request.data, "updated_at": now}
            if not request.product_id:
                enriched.update({
                    "created_at": now,
                    "erfassung_erfassungsdatum": now,
                    "erfassung_erfassung_fuer": CAPTURE_COUNTRY,
                })
                if request.source_type:
                    enriched["source_type"] = request.source_type
                if request.source_url:
                    enriched["source_url"] = request.source_url
                    enriched["erfassung_quell_url"] = request.source_url
                product = self._insert(enriched)
                operation = "create"
            elif self._find(request.product_id, "id") is None:
                logger.info(f"Product {request.product_id} does not exist, creating new one")
                product = self._insert(enriched)
                operation = "create"
            elif request.column and request.update_type == "column_analysis":
                update = column_fields(request.data, request.column)
                update["updated_at"] = now
                update["erfassung_extraktions_log"] = f"KI-Analyse Spalte {request.column} abgeschlossen - {now}"
                logger.info(f"Updating column {request.column} of product {request.product_id}: {len(update) - 2} fields")
                product = self._update(request.product_id, update)
                operation = "update"
            else:
                product = self._update(request.product_id, enriched)
                operation = "update"

            logger.info(f"Product {operation} successful: {product.get('id')}")
            return {"operation": operation, "product_id": str(product.get("id")), "product": product}
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Product save failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def save_all(self, request: ProductSaveAllRequest) -> Dict[str, Any]:
        """Merge every column's data into one product row and create or update it."""
        try:
            now = _now()
            product_id = request.product_id or str(uuid.uuid4())
            complete = {
                "id": product_id,
                **request.produkt_data,
                **request.parameter_data,
                **request.dokumente_data,
                **request.haendler_data,
                **request.erfahrung_data,
                "updated_at": now,
                "erfassung_erfassungsdatum": now,
                "erfassung_erfassung_fuer": CAPTURE_COUNTRY,
                "source_type": request.source_type,
                "erfassung_quell_url": request.source_url,
                "erfassung_extraktions_log": f"Vollständige KI-Analyse abgeschlossen - {now}",
            }
            complete = convert_price_fields(complete)

            if self._find(product_id, "id") is None:
                complete["created_at"] = now
                product = self._insert(complete)
                operation = "create"
            else:
                product = self._update(product_id, complete)
                operation = "update"
            logger.info(f"Product {operation} with complete data: {product_id}")
            return {"operation": operation, "product_id": str(product.get("id")), "product": product}
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Product save-all failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_product(self, product_id: str) -> Dict[str, Any]:
        try:
            product = self._find(product_id)
            if not product:
                raise HTTPException(status_code=404, detail="Product not found")
            return product
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        try:
            query = self.supabase.table("products").select("*")
            if search:
                query = query.or_(
                    f"produkt_name_modell.ilike.%{search}%,produkt_hersteller.ilike.%{search}%"
                )
            if category:
                query = query.contains("produkt_kategorie", [category])
            result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
            return result.data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    async def update_primary_price(self, product_id: str, perplexity) -> Dict[str, Any]:
        """Re-read the price from the product's primary URL via Perplexity and store it."""
        product = self.get_product(product_id)
        primary_url = product.get("haendler_haendler_produkt_url") or product.get("erfassung_quell_url")
        if not primary_url:
            raise HTTPException(status_code=400, detail="No primary URL found for this product")
        logger.info(f"Updating price for product {product_id} from {primary_url}")

        prompt = build_price_prompt(
            primary_url,
            product_name=product.get("produkt_name_modell"),
            manufacturer=product.get("produkt_hersteller"),
            current_price=product.get("haendler_preis"),
            current_unit=product.get("haendler_einheit"),
        )
        answer = await perplexity.extract_price(primary_url, prompt)
        price = parse_price_response(answer["content"])
        if not price or price["haendler_preis"] is None:
            raise HTTPException(status_code=400, detail="No valid price data found")

        now = _now()
        self._update(product_id, {
            **price,
            "updated_at": now,
            "erfassung_extraktions_log": f"Preis-Update via Perplexity API - {now} - {answer['content'][:200]}",
        })
        return {
            "product_id": product_id,
            "old_price": to_number(product.get("haendler_preis")),
            "new_price": price["haendler_preis"],
            "old_unit": product.get("haendler_einheit"),
            "new_unit": price["haendler_einheit"],
            "price_per_unit": price["haendler_preis_pro_einheit"],
            "source_url": primary_url,
        }

    def transfer_images(self, product_id: str, capture_id: str) -> Dict[str, Optional[str]]:
        """Copy a capture's data-URI screenshot and thumbnail into the product files bucket."""
        if not product_id or not capture_id:
            raise HTTPException(status_code=400, detail="productId and captureId are required")
        capture = CaptureService(self.supabase).get_capture(capture_id)
        storage = self.supabase.storage.from_(PRODUCT_FILES_BUCKET)

        uploaded: Dict[str, Optional[str]] = {"screenshot_path": None, "thumbnail_path": None}
        for kind in ("screenshot", "thumbnail"):
            match = _DATA_URI.match(getattr(capture, f"{kind}_url") or "")
            if not match:
                continue
            filename = f"product_{product_id}_{kind}.png"
            try:
                storage.upload(
                    filename,
                    base64.b64decode(match.group(2)),
                    {"content-type": match.group(1), "upsert": "true"},
                )
            except Exception as e:
                logger.error(f"Uploading {kind} for product {product_id} failed: {e}")
                continue
            uploaded[f"{kind}_path"] = storage.get_public_url(filename)

        update = {k: v for k, v in uploaded.items() if v}
        if update:
            self._update(product_id, update)
        return uploaded


class CaptureService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_capture(self, capture: CaptureCreate) -> CaptureResponse:
        try:
            result = self.supabase.table("captures").insert({
                **capture.model_dump(),
                "created_at": _now(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create capture")
            return CaptureResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_captures(self, limit: int = 50, offset: int = 0) -> List[CaptureResponse]:
        try:
            result = self.supabase.table("captures")\
                .select("*")\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [CaptureResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_capture(self, capture_id: str) -> CaptureResponse:
        try:
            result = self.supabase.table("captures").select("*").eq("id", capture_id).limit(1).execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Capture not found")
            return CaptureResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
