from sqlalchemy.orm import Session

from storefront.repos.product_repo import ProductRepo
from storefront.domain.schemas import ProductOut


class ProductService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_products(self) -> list[ProductOut]:
        return [ProductOut.model_validate(p) for p in self.repo.list_products()]
