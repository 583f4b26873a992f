"""
db/models.py – SQLAlchemy ORM models for the discovery schema.

Shops, their menus/reviews/images/offers, the suggestion sections that drive
the home screen, saved shops, search history and app-level config.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp; DateTime columns store UTC without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class MainCategory(Base):
    __tablename__ = "main_category"

    id        = Column(String, primary_key=True, default=_uuid)
    name      = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    shops = relationship("Shop", back_populates="category")


class Shop(Base):
    __tablename__ = "shop"

    id           = Column(String, primary_key=True, default=_uuid)
    name         = Column(String, nullable=False)
    description  = Column(Text, nullable=True, default="")
    address      = Column(String, nullable=True, default="")
    city         = Column(String, nullable=True, default="")
    latitude     = Column(Float, nullable=True)
    longitude    = Column(Float, nullable=True)
    logo_url     = Column(String, nullable=True)
    avg_rating   = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=True, default=0)
    open_hours   = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    category_id  = Column(String, ForeignKey("main_category.id"), nullable=True)
    is_active    = Column(Boolean, nullable=False, default=True)
    created_at   = Column(DateTime, nullable=False, default=utcnow)

    category = relationship("MainCategory", back_populates="shops")
    menus    = relationship("Menu", back_populates="shop", cascade="all, delete-orphan")
    reviews  = relationship("Review", back_populates="shop", cascade="all, delete-orphan")
    images   = relationship("ShopImage", cascade="all, delete-orphan")
    offers   = relationship("Offer", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.name!r}>"


class Menu(Base):
    __tablename__ = "menu"

    id             = Column(String, primary_key=True, default=_uuid)
    shop_id        = Column(String, ForeignKey("shop.id"), nullable=False, index=True)
    item_name      = Column(String, nullable=False)
    description    = Column(Text, nullable=True, default="")
    price          = Column(Float, nullable=True)
    category_name  = Column(String, nullable=True)
    image_url      = Column(String, nullable=True)
    is_available   = Column(Boolean, nullable=False, default=True)
    is_quick_snack = Column(Boolean, nullable=False, default=False)

    shop = relationship("Shop", back_populates="menus")


class Review(Base):
    __tablename__ = "review"

    id          = Column(String, primary_key=True, default=_uuid)
    shop_id     = Column(String, ForeignKey("shop.id"), nullable=False, index=True)
    user_id     = Column(String, nullable=True)
    rating      = Column(Integer, nullable=False)
    comment     = Column(Text, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=True)
    created_at  = Column(DateTime, nullable=False, default=utcnow)

    shop = relationship("Shop", back_populates="reviews")


class ShopImage(Base):
    __tablename__ = "shop_image"

    id         = Column(String, primary_key=True, default=_uuid)
    shop_id    = Column(String, ForeignKey("shop.id"), nullable=False, index=True)
    image_url  = Column(String, nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)


class Offer(Base):
    __tablename__ = "offer"

    id          = Column(String, primary_key=True, default=_uuid)
    shop_id     = Column(String, ForeignKey("shop.id"), nullable=False, index=True)
    title       = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    valid_from  = Column(DateTime, nullable=True)
    valid_to    = Column(DateTime, nullable=True)
    is_active   = Column(Boolean, nullable=False, default=True)


class SavedShop(Base):
    __tablename__ = "saved_shop"

    id       = Column(String, primary_key=True, default=_uuid)
    user_id  = Column(String, nullable=False, index=True)
    shop_id  = Column(String, ForeignKey("shop.id"), nullable=False)
    saved_at = Column(DateTime, nullable=False, default=utcnow)

    shop = relationship("Shop")


class SuggestionSection(Base):
    """One home-screen section; `type` names the behaviour that fills it."""
    __tablename__ = "suggestion_section"

    id               = Column(String, primary_key=True, default=_uuid)
    title            = Column(String, nullable=False)
    subtitle         = Column(String, nullable=True)
    image_url        = Column(String, nullable=True)
    type             = Column(String, nullable=False)
    main_category_id = Column(String, ForeignKey("main_category.id"), nullable=True)
    config           = Column(JSON, nullable=True)
    sort_order       = Column(Integer, nullable=False, default=0)
    is_active        = Column(Boolean, nullable=False, default=True)

    main_category = relationship("MainCategory")


class SearchHistory(Base):
    __tablename__ = "search_history"

    id          = Column(String, primary_key=True, default=_uuid)
    user_id     = Column(String, nullable=False, index=True)
    query       = Column(String, nullable=False)
    target_id   = Column(String, nullable=True)
    target_name = Column(String, nullable=True)
    target_type = Column(String, nullable=True)
    searched_at = Column(DateTime, nullable=False, default=utcnow)


class AppConfig(Base):
    __tablename__ = "app_config"

    key   = Column(String, primary_key=True)
    value = Column(String, nullable=True)
