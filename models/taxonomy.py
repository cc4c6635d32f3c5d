from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class PlantFamily(BaseModel, Base):
    __tablename__ = "plant_families"

    name = Column(String(100), nullable=False, unique=True, index=True)

    plants = relationship("Plant", back_populates="family")


class Genus(BaseModel, Base):
    __tablename__ = "genera"

    name = Column(String(100), nullable=False, unique=True, index=True)

    plants = relationship("Plant", back_populates="genus")


class Sector(BaseModel, Base):
    __tablename__ = "sectors"

    name = Column(String(100), nullable=False, unique=True, index=True)
    # plants added to such a sector must carry a biometric_id
    biometric_required = Column(Boolean, nullable=False, default=False)

    plants = relationship("Plant", back_populates="sector", passive_deletes=True)
