from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    Float,
    Text,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Plant(BaseModel, Base):
    __tablename__ = "plants"

    inventory_number = Column(String(64), nullable=True, index=True)

    # Taxonomy: a family or genus cannot be deleted while plants reference it
    family_id = Column(Integer, ForeignKey("plant_families.id", ondelete="RESTRICT"), nullable=True)
    genus_id = Column(Integer, ForeignKey("genera.id", ondelete="RESTRICT"), nullable=True)
    sector_id = Column(Integer, ForeignKey("sectors.id", ondelete="RESTRICT"), nullable=False, index=True)

    species = Column(String(255), nullable=True)
    synonyms = Column(Text, nullable=True)
    variety = Column(String(255), nullable=True)
    form = Column(String(255), nullable=True)
    plant_origin = Column(String(255), nullable=True)
    natural_habitat = Column(Text, nullable=True)
    determined = Column(String(255), nullable=True)
    ecology_biology = Column(Text, nullable=True)
    economic_use = Column(Text, nullable=True)
    date_of_planting = Column(String(64), nullable=True)
    originator = Column(String(255), nullable=True)
    date = Column(String(64), nullable=True)
    country = Column(String(128), nullable=True)
    protection_status = Column(String(255), nullable=True)
    herbarium_presence = Column(Boolean, nullable=False, default=False)
    herbarium_duplicate = Column(String(255), nullable=True)
    filled_out = Column(String(255), nullable=True)
    image_path = Column(String(512), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    note = Column(Text, nullable=True)
    year_of_obs = Column(Integer, nullable=True)
    phenophase_date = Column(String(64), nullable=True)
    year = Column(Integer, nullable=True)
    measurement_type = Column(String(128), nullable=True)
    value = Column(String(128), nullable=True)
    biometric_id = Column(Integer, nullable=True)

    family = relationship("PlantFamily", back_populates="plants")
    genus = relationship("Genus", back_populates="plants")
    sector = relationship("Sector", back_populates="plants")

    __table_args__ = (
        CheckConstraint("(latitude IS NULL) OR (latitude BETWEEN -90 AND 90)", name="ck_plants_latitude_range"),
        CheckConstraint("(longitude IS NULL) OR (longitude BETWEEN -180 AND 180)", name="ck_plants_longitude_range"),
        Index("ix_plants_species", "species"),
    )
