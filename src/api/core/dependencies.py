from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.billing.ledger import PaymentLedgerRepository
from src.modules.billing.portone import PortOneClient, get_portone_client
from src.modules.billing.use_cases import BillingEventHandler


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


async def get_payment_ledger(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> PaymentLedgerRepository:
    """Get payment ledger repository with database session."""
    return PaymentLedgerRepository(db)


async def get_billing_event_handler(
    ledger: Annotated[PaymentLedgerRepository, Depends(get_payment_ledger)],
    provider: Annotated[PortOneClient, Depends(get_portone_client)],
) -> BillingEventHandler:
    """Get billing event handler wired to the ledger and PortOne."""
    return BillingEventHandler(ledger, provider)


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
PaymentLedgerDep = Annotated[PaymentLedgerRepository, Depends(get_payment_ledger)]
PortOneClientDep = Annotated[PortOneClient, Depends(get_portone_client)]
BillingEventHandlerDep = Annotated[
    BillingEventHandler, Depends(get_billing_event_handler)
]
