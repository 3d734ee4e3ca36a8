import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    birth_date = Column(Date, nullable=True)
    curp = Column(String(18), nullable=True)  # Mexican national population registry key
    address = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), default="user", nullable=False)  # user, admin
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bicycles = relationship("Bicycle", back_populates="owner", cascade="all, delete-orphan")
    subscriptions = relationship(
        "Subscription", back_populates="user", cascade="all, delete-orphan"
    )
    payments = relationship("Payment", back_populates="user", cascade="all, delete-orphan")
    theft_reports = relationship("TheftReport", back_populates="user")


class Subscription(Base):
    """Local mirror of a Dodo Payments subscription"""

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(String(255), nullable=True)  # Dodo customer ID
    subscription_id = Column(String(255), nullable=True, index=True)  # Dodo subscription ID
    plan_type = Column(String(20), nullable=False)  # basic, standard, family, premium
    bicycle_limit = Column(Integer, nullable=False, default=1)
    status = Column(String(20), default="pending", nullable=False)  # active, past_due, canceled
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    # Downgrades wait for the next renewal
    pending_plan_change = Column(String(20), nullable=True)
    pending_plan_change_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="subscriptions")


class Bicycle(Base):
    __tablename__ = "bicycles"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    serial_number = Column(String(100), unique=True, index=True, nullable=False)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    color = Column(String(50), nullable=False)
    characteristics = Column(Text, nullable=True)
    bike_type = Column(String(50), nullable=False)  # mountain, road, urban, bmx...
    year = Column(Integer, nullable=True)
    wheel_size = Column(String(20), nullable=True)
    groupset = Column(String(100), nullable=True)
    registration_date = Column(DateTime, server_default=func.now())
    payment_status = Column(Boolean, default=False, nullable=False)
    theft_status = Column(String(20), default="active", nullable=False)  # active, reported_stolen
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="bicycles")
    images = relationship(
        "BicycleImage",
        back_populates="bicycle",
        cascade="all, delete-orphan",
        order_by="BicycleImage.id",
    )
    invoice = relationship(
        "BicycleInvoice", back_populates="bicycle", uselist=False, cascade="all, delete-orphan"
    )
    theft_reports = relationship(
        "TheftReport", back_populates="bicycle", cascade="all, delete-orphan"
    )
    payments = relationship("Payment", back_populates="bicycle")


class BicycleImage(Base):
    __tablename__ = "bicycle_images"

    id = Column(Integer, primary_key=True, index=True)
    bicycle_id = Column(Integer, ForeignKey("bicycles.id"), nullable=False, index=True)
    image_url = Column(String(1000), nullable=False)
    storage_key = Column(String(500), nullable=True)  # R2 object key
    created_at = Column(DateTime, server_default=func.now())

    bicycle = relationship("Bicycle", back_populates="images")


class BicycleInvoice(Base):
    """Purchase invoice attached to a bicycle (one per bicycle)"""

    __tablename__ = "bicycle_invoices"

    id = Column(Integer, primary_key=True, index=True)
    bicycle_id = Column(Integer, ForeignKey("bicycles.id"), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=False)
    storage_key = Column(String(500), nullable=True)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    bicycle = relationship("Bicycle", back_populates="invoice")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    bicycle_id = Column(Integer, ForeignKey("bicycles.id"), nullable=True)
    provider_payment_id = Column(String(255), unique=True, nullable=True)  # Dodo payment ID
    amount = Column(Integer, nullable=False, default=0)  # Lowest currency unit (centavos)
    currency = Column(String(3), default="MXN", nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)  # pending, completed, failed
    payment_type = Column(String(20), default="subscription", nullable=False)
    subscription_id = Column(String(255), nullable=True)  # Dodo subscription ID
    payment_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="payments")
    bicycle = relationship("Bicycle", back_populates="payments")


class TheftReport(Base):
    __tablename__ = "theft_reports"

    id = Column(Integer, primary_key=True, index=True)
    bicycle_id = Column(Integer, ForeignKey("bicycles.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    report_date = Column(DateTime, server_default=func.now())
    location = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    police_report_number = Column(String(100), nullable=True)
    status = Column(String(20), default="reported", nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    bicycle = relationship("Bicycle", back_populates="theft_reports")
    user = relationship("User", back_populates="theft_reports")


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, index=True, nullable=False)  # Stored uppercase
    discount_type = Column(String(20), nullable=False)  # percentage, fixed
    discount_value = Column(Float, nullable=False)  # Percent, or MXN for fixed discounts
    max_uses = Column(Integer, nullable=True)  # None means unlimited
    current_uses = Column(Integer, default=0, nullable=False)
    valid_from = Column(DateTime, server_default=func.now())
    valid_until = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    applicable_plans = Column(JSON, nullable=True)  # None means every plan
    created_at = Column(DateTime, server_default=func.now())
