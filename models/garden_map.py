from sqlalchemy import Column, String, Text

from models.base_model import BaseModel, Base


class GardenArea(BaseModel, Base):
    __tablename__ = "garden_areas"

    location_path = Column(String(255), nullable=True)
    # normalized WKT polygon, see models.schemas.common.normalize_polygon_wkt
    geometry = Column(Text, nullable=False)


class MapImage(BaseModel, Base):
    """Single row holding the path of the current garden map image."""
    __tablename__ = "map_images"

    image_path = Column(String(512), nullable=False)
