from pydantic import BaseModel, Field, conint


class CartItemCreate(BaseModel):
    product_id: int = Field(alias="productId")
    quantity: conint(ge=1) = 1 # type: ignore

    class Config:
        populate_by_name = True


class CartItemUpdate(BaseModel):
    # Sem restrição aqui: quantidade inválida vira 400 na rota
    quantity: int = 0
