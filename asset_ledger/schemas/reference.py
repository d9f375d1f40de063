from pydantic import BaseModel


class TypeCreate(BaseModel):
    type_name: str


class BrandCreate(BaseModel):
    brand_name: str
