# distribuidora/modules/sales/services.py
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from loguru import logger

from distribuidora.core.counters import CounterService
from distribuidora.modules.people.repository import ClientRepository, VendorRepository
from distribuidora.modules.stock.models import ProductInDB
from distribuidora.modules.stock.repository import ProductRepository, StockMovementRepository, StockRepository
from distribuidora.modules.stock.services import INSUFFICIENT_STOCK, StockService
from .models import (
    SaleCreateAPI,
    SaleCreateInternal,
    SaleCreatedAPI,
    SaleDetailAPI,
    SaleInDB,
    SaleItemAPI,
    SaleSummaryAPI,
)
from .repository import SaleRepository


def compute_totals(items, products: Dict[str, ProductInDB]) -> Tuple[float, float]:
    """Total = soma dos subtotais; lucro desconta o custo de compra dos produtos conhecidos."""
    total = sum(item.subtotal for item in items)
    profit = 0.0
    for item in items:
        product = products.get(item.product_id)
        if product:
            profit += item.subtotal - product.purchase_price * item.quantity
    return round(total, 2), round(profit, 2)


class SalesService:
    def __init__(self, stock_service: Optional[StockService] = None):
        self.stock_service = stock_service or StockService()

    async def create_sale(
        self,
        payload: SaleCreateAPI,
        sale_repo: SaleRepository,
        client_repo: ClientRepository,
        vendor_repo: VendorRepository,
        product_repo: ProductRepository,
        stock_repo: StockRepository,
        movement_repo: StockMovementRepository,
        counter_service: CounterService,
    ) -> SaleCreatedAPI:
        """
        Registra uma venda e dá baixa no estoque de cada item.
        O estoque de todos os itens é validado antes de qualquer escrita.
        """
        log = logger.bind(client_id=payload.client_id, vendor_id=payload.vendor_id, service="SalesService")
        log.info(f"Creating sale with {len(payload.items)} item(s)...")

        # 1. Cliente e vendedor
        if not await client_repo.get_by_id(payload.client_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado")
        if not await vendor_repo.get_by_id(payload.vendor_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendedor não encontrado")

        # 2. Produtos e saldo (quantidades somadas por produto)
        needed: Dict[str, int] = defaultdict(int)
        for item in payload.items:
            needed[item.product_id] += item.quantity

        products: Dict[str, ProductInDB] = {}
        for product_id, quantity in needed.items():
            product = await product_repo.get_by_id(product_id)
            if not product:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Produto não encontrado: {product_id}")
            products[product_id] = product
            stock = await stock_repo.get_by_product(product_id)
            available = stock.quantity if stock else 0
            if available < quantity:
                log.warning(f"Insufficient stock for '{product.name}': needed {quantity}, available {available}.")
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"{INSUFFICIENT_STOCK}: {product.name} (disponível {available}, solicitado {quantity})",
                )

        # 3. Totais e referência
        total, profit = compute_totals(payload.items, products)
        try:
            sale_ref = await counter_service.generate_reference("VND")
        except (ValueError, RuntimeError) as e:
            raise HTTPException(status_code=500, detail=f"Could not generate sale reference: {e}")

        # 4. Baixa no estoque; estorna o que já foi baixado se algum item falhar
        applied: List[Tuple[str, int]] = []
        try:
            for product_id, quantity in needed.items():
                await self.stock_service.adjust(
                    product_id, "saida", quantity, stock_repo, movement_repo, note=f"Venda {sale_ref}"
                )
                applied.append((product_id, quantity))

            sale = await sale_repo.create(SaleCreateInternal(
                sale_ref=sale_ref,
                client_id=payload.client_id,
                vendor_id=payload.vendor_id,
                payment_method=payload.payment_method,
                notes=payload.notes,
                items=payload.items,
                total=total,
                profit=profit,
            ))
        except Exception:
            log.error(f"Sale {sale_ref} failed after {len(applied)} stock withdrawal(s); reverting.")
            await self._revert_withdrawals(applied, sale_ref, stock_repo, movement_repo)
            raise

        log.success(f"Sale {sale_ref} created. total={total} profit={profit}")
        return SaleCreatedAPI(sale_id=sale.id, sale_ref=sale_ref, total=total, profit=profit)

    async def _revert_withdrawals(
        self,
        applied: List[Tuple[str, int]],
        sale_ref: str,
        stock_repo: StockRepository,
        movement_repo: StockMovementRepository,
    ) -> None:
        for product_id, quantity in applied:
            try:
                await self.stock_service.adjust(
                    product_id, "entrada", quantity, stock_repo, movement_repo, note=f"Estorno {sale_ref}"
                )
            except Exception:
                logger.exception(f"CRITICAL: failed to revert stock withdrawal of {quantity} for product {product_id} ({sale_ref}).")

    async def list_sales(
        self,
        sale_repo: SaleRepository,
        client_repo: ClientRepository,
        vendor_repo: VendorRepository,
        client_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[SaleSummaryAPI]:
        sales = await sale_repo.list_sales(client_id=client_id, vendor_id=vendor_id, start=start, end=end)
        client_names = await self._names(client_repo, {s.client_id for s in sales})
        vendor_names = await self._names(vendor_repo, {s.vendor_id for s in sales})
        return [
            SaleSummaryAPI(
                **self._summary_fields(sale),
                client_name=client_names.get(sale.client_id),
                vendor_name=vendor_names.get(sale.vendor_id),
            )
            for sale in sales
        ]

    async def get_sale(
        self,
        sale_id: str,
        sale_repo: SaleRepository,
        client_repo: ClientRepository,
        vendor_repo: VendorRepository,
        product_repo: ProductRepository,
    ) -> SaleDetailAPI:
        sale = await sale_repo.get_by_id(sale_id)
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venda não encontrada")
        client = await client_repo.get_by_id(sale.client_id)
        vendor = await vendor_repo.get_by_id(sale.vendor_id)
        product_names = await self._names(product_repo, {item.product_id for item in sale.items})
        return SaleDetailAPI(
            **self._summary_fields(sale),
            client_name=client.name if client else None,
            client_phone=client.phone if client else None,
            vendor_name=vendor.name if vendor else None,
            items=[
                SaleItemAPI(**item.model_dump(), product_name=product_names.get(item.product_id))
                for item in sale.items
            ],
        )

    @staticmethod
    def _summary_fields(sale: SaleInDB) -> dict:
        return {
            "id": sale.id,
            "sale_ref": sale.sale_ref,
            "client_id": sale.client_id,
            "vendor_id": sale.vendor_id,
            "payment_method": sale.payment_method,
            "total": sale.total,
            "profit": sale.profit,
            "notes": sale.notes,
            "created_at": sale.created_at,
        }

    @staticmethod
    async def _names(repo, ids) -> Dict[str, str]:
        names = {}
        for doc_id in ids:
            doc = await repo.get_by_id(doc_id)
            if doc:
                names[doc_id] = doc.name
        return names


# Factory to get service instance
async def get_sales_service() -> SalesService:
    return SalesService()
