"""Customer address book, scoped to the caller's shop."""
import logging
import uuid
from typing import Optional, List, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from glassbill.core.exceptions import NotFoundError
from glassbill.core.tenant_context import TenantContext
from glassbill.models.customer import Customer
from glassbill.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, tenant: TenantContext, data: CustomerCreate) -> Customer:
        customer = Customer(shop_id=tenant.shop_id, **data.model_dump())
        self.db.add(customer)
        await self.db.flush()
        await self.db.refresh(customer)

        logger.info(f"Customer '{customer.name}' created for shop {tenant.shop_id}")
        return customer

    async def get(self, tenant: TenantContext, customer_id: uuid.UUID) -> Customer:
        """
        Load a customer of the caller's shop.

        Raises:
            NotFoundError: no such customer
            CrossTenantAccessError: the customer belongs to another shop
        """
        customer = await self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found", {"customer_id": str(customer_id)})
        tenant.ensure_owns(customer.shop_id, "Customer")
        return customer

    async def update(
        self,
        tenant: TenantContext,
        customer_id: uuid.UUID,
        data: CustomerUpdate,
    ) -> Customer:
        """Update the address book entry. Issued documents keep their snapshot."""
        customer = await self.get(tenant, customer_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(customer, field, value)

        await self.db.flush()
        await self.db.refresh(customer)
        return customer

    async def delete(self, tenant: TenantContext, customer_id: uuid.UUID) -> None:
        customer = await self.get(tenant, customer_id)
        await self.db.delete(customer)
        await self.db.flush()
        logger.info(f"Customer {customer_id} deleted by {tenant.username}")

    async def list(
        self,
        tenant: TenantContext,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Customer], int]:
        """Newest first; search matches name or mobile."""
        stmt = select(Customer).where(Customer.shop_id == tenant.shop_id)

        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.mobile.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = stmt.order_by(Customer.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total
