# dokon/data/models/cart_item.py
from sqlalchemy import Column, Index, Integer, String, func

from dokon.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String, primary_key=True)
    session_id = Column(String, nullable=False, index=True)
    # plain id, cart rows may outlive their product
    product_id = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    selected_color = Column(String, nullable=True)
    selected_size = Column(String, nullable=True)
    selected_container = Column(String, nullable=True)


# one row per session, product and variant; a missing variant counts as ""
Index(
    "uq_cart_items_line",
    CartItemModel.session_id,
    CartItemModel.product_id,
    func.coalesce(CartItemModel.selected_color, ""),
    func.coalesce(CartItemModel.selected_size, ""),
    unique=True,
)
