"""
src/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

Imports every model so that Base.metadata holds the complete schema before
create_all() runs at startup or Alembic autogenerates a migration.

Models Registered:
-----------------
- Device: Registered tracking devices (devices table)
- LocationSample: Location pings received from devices (locations table)

Important:
----------
Any new model class MUST be imported here.
"""

from src.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from src.Models.device import Device
from src.Models.location import LocationSample
