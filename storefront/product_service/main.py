# storefront/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


# ceny w pelnych jednostkach waluty, int
PRODUCTS = {
    "p-keyboard": {
        "id": "p-keyboard",
        "name": "Mechanical Keyboard",
        "price": 4999,
        "images": ["/img/keyboard-1.jpg", "/img/keyboard-2.jpg"],
        "in_stock": True,
        "stock_quantity": 25,
    },
    "p-mouse": {
        "id": "p-mouse",
        "name": "Wireless Mouse",
        "price": 899,
        "images": ["/img/mouse.jpg"],
        "in_stock": True,
        "stock_quantity": 120,
    },
    "p-monitor": {
        "id": "p-monitor",
        "name": "27in Monitor",
        "price": 18999,
        "images": [],
        "in_stock": False,
        "stock_quantity": 0,
    },
}


@app.get("/products/{product_id}")
def get_product(product_id: str):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
