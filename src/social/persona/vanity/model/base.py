"""Declarative base and the column types shared by the models."""

from datetime import datetime
from sqlalchemy import DateTime, String, orm
from sqlalchemy.orm import mapped_column

from typing_extensions import Annotated

# One DNS label: the longest username that still forms a valid handle.
dnslabel = Annotated[str, 63]
hostname = Annotated[str, 253]
didstr = Annotated[str, 2048]
guidpk = Annotated[str, mapped_column(String(512), primary_key=True)]


class Base(orm.DeclarativeBase):
    type_annotation_map = {
        dnslabel: String(63),
        hostname: String(253),
        didstr: String(2048),
        guidpk: String(512),
        datetime: DateTime(timezone=True),
    }
