import json
from datetime import datetime
from models.db import db


class CartItem(db.Model):
    __tablename__ = "cart_items"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    variation_id = db.Column(db.Integer, db.ForeignKey("product_variations.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    layout_id = db.Column(db.String(40), nullable=True)  # multi-panel products only
    image_effect_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    edge_design_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    hanging_mechanism = db.Column(db.Boolean, default=False, nullable=False)
    hanging_variety_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    frame_thickness_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    frame_colour_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    frame_type_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    floating_frame_colour_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    product_type_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=True)
    acrylic_cover = db.Column(db.Boolean, default=False, nullable=False)

    image_key = db.Column(db.String(255), nullable=True)
    image_position_x = db.Column(db.Float, default=0.0, nullable=False)
    image_position_y = db.Column(db.Float, default=0.0, nullable=False)
    zoom_level = db.Column(db.Integer, default=100, nullable=False)
    panel_images_json = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    variation = db.relationship("ProductVariation")

    @property
    def panel_images(self):
        return json.loads(self.panel_images_json) if self.panel_images_json else {}

    def options(self):
        return {
            "layout_id": self.layout_id,
            "image_effect_id": self.image_effect_id,
            "edge_design_id": self.edge_design_id,
            "hanging_mechanism": self.hanging_mechanism,
            "hanging_variety_id": self.hanging_variety_id,
            "frame_thickness_id": self.frame_thickness_id,
            "frame_colour_id": self.frame_colour_id,
            "frame_type_id": self.frame_type_id,
            "floating_frame_colour_id": self.floating_frame_colour_id,
            "product_type_id": self.product_type_id,
            "acrylic_cover": self.acrylic_cover,
            "image_key": self.image_key,
            "image_position": {"x": self.image_position_x, "y": self.image_position_y},
            "zoom_level": self.zoom_level,
            "panel_images": self.panel_images,
        }
