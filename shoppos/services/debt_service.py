"""Customer debt ledger operations - Multi-Tenant."""
from typing import List, Dict, Any
from sqlalchemy import func, and_, or_
from shoppos.database import dialect_insert
from shoppos.models import Customer, Debt, OPEN_DEBT_PREDICATE
from shoppos.exceptions import NotFoundError, ValidationError


def get_customer(session, customer_id: int, business_id: int) -> Customer:
    """Get customer by ID; customers of other businesses are reported as missing."""
    customer = session.query(Customer).filter(
        Customer.id == customer_id,
        Customer.business_id == business_id
    ).first()

    if not customer:
        raise NotFoundError('Customer not found')
    return customer


def accrue_debt(session, customer_id: int, business_id: int, amount: int) -> Debt:
    """
    Add ``amount`` to the customer's open debt, opening one if none exists.

    Runs as a single upsert against the partial unique index on open debts,
    so the customer ends up with exactly one open debt even when two sales
    accrue at the same time. Must run inside the sale's transaction.

    Returns:
        The customer's open Debt after the increment
    """
    if amount <= 0:
        raise ValidationError('Debt amount must be greater than 0')

    insert_stmt = dialect_insert(session, Debt).values(
        customer_id=customer_id,
        business_id=business_id,
        total_amount=amount,
        amount_paid=0,
        balance=amount,
        is_cleared=False,
    )
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=['customer_id'],
        index_where=OPEN_DEBT_PREDICATE,
        set_={
            'total_amount': Debt.total_amount + insert_stmt.excluded.total_amount,
            'balance': Debt.balance + insert_stmt.excluded.balance,
            'updated_at': func.now(),
        },
    )
    session.execute(stmt)

    return get_open_debt(session, customer_id)


def get_open_debt(session, customer_id: int):
    """Return the customer's open debt or None."""
    return session.query(Debt).filter(
        Debt.customer_id == customer_id,
        OPEN_DEBT_PREDICATE
    ).populate_existing().first()


def open_debt_total(session, customer_id: int) -> int:
    """Sum of outstanding balances on the customer's uncleared debts."""
    total = session.query(func.coalesce(func.sum(Debt.balance), 0)).filter(
        Debt.customer_id == customer_id,
        OPEN_DEBT_PREDICATE
    ).scalar()
    return int(total or 0)


def search_customers(session, business_id: int, search_query: str, limit: int = 10) -> List[Dict[str, Any]]:
    """Search customers by name or phone, with their outstanding debt."""
    search_query = (search_query or '').strip()[:100]
    if not search_query:
        return []

    pattern = f'%{search_query.lower()}%'
    total_debt = func.coalesce(func.sum(Debt.balance), 0)

    rows = (session.query(Customer, total_debt)
            .outerjoin(Debt, and_(Debt.customer_id == Customer.id, OPEN_DEBT_PREDICATE))
            .filter(
                Customer.business_id == business_id,
                or_(
                    func.lower(Customer.full_name).like(pattern),
                    and_(Customer.phone.isnot(None), func.lower(Customer.phone).like(pattern))
                )
            )
            .group_by(Customer.id)
            .order_by(Customer.full_name)
            .limit(limit)
            .all())

    return [
        {
            'id': customer.id,
            'fullName': customer.full_name,
            'phone': customer.phone,
            'totalDebt': int(debt or 0),
        }
        for customer, debt in rows
    ]
