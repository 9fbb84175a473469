"""SQLAlchemy models for shopledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Item(Base):
    """Stock item model."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    shop_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    # May go negative when an over-request is confirmed
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Credit(Base):
    """Customer credit model."""

    __tablename__ = "credits"

    id = Column(Integer, primary_key=True)
    shop_id = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    customer_first_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    customer_address = Column(String, nullable=False)
    appointment_date = Column(Date, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    closed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    version = Column(Integer, nullable=False, default=0)

    # Relationships
    lines = relationship(
        "CreditLine", back_populates="credit", cascade="all, delete-orphan", order_by="CreditLine.position"
    )
    payments = relationship(
        "Payment", back_populates="credit", cascade="all, delete-orphan", order_by="Payment.id"
    )


class CreditLine(Base):
    """Credit line model. Item name and price are snapshots."""

    __tablename__ = "credit_lines"

    id = Column(Integer, primary_key=True)
    credit_id = Column(Integer, ForeignKey("credits.id"), nullable=False)
    position = Column(Integer, nullable=False)
    # Weak reference: items may be deleted independently
    item_id = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    # Relationships
    credit = relationship("Credit", back_populates="lines")


class Payment(Base):
    """Credit payment model."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    credit_id = Column(Integer, ForeignKey("credits.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    comment = Column(String, nullable=True)

    # Relationships
    credit = relationship("Credit", back_populates="payments")


class Sale(Base):
    """Direct sale model."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    shop_id = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    item_name = Column(String, nullable=False)
    item_category = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    sale_date = Column(Date, nullable=False)
    user_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Transfer(Base):
    """Stock transfer or removal model."""

    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True)
    shop_id = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    item_name = Column(String, nullable=False)
    item_category = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)
    kind = Column(String, nullable=False)
    to_shop_id = Column(String, nullable=True, index=True)
    user_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Counter(Base):
    """Named integer counter, used for document numbering."""

    __tablename__ = "counters"

    key = Column(String, primary_key=True)
    value = Column(Integer, nullable=False, default=0)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
