# starting catalog and accounts, loaded once per process
from typing import List

from db.models import Product, User

DEFAULT_PASSWORD = "123"


def users() -> List[User]:
    return [
        User("mariocas", "admin", "Mario Casas", DEFAULT_PASSWORD),
        User("jabuitrago", "seller", "J. A. Buitrago", DEFAULT_PASSWORD),
        User("jleal", "seller", "J. Leal", DEFAULT_PASSWORD),
        User("jpineda", "seller", "J. Pineda", DEFAULT_PASSWORD),
        User("kgonzales", "seller", "K. Gonzales", DEFAULT_PASSWORD),
    ]


def products() -> List[Product]:
    return [
        Product("p1", "Café Colombiano", 15.50, 50, "https://picsum.photos/id/1060/400/300"),
        Product("p2", "Teclado Mecánico", 120.00, 25, "https://picsum.photos/id/5/400/300"),
        Product("p3", "Libreta de Notas", 8.75, 100, "https://picsum.photos/id/24/400/300"),
        Product("p4", "Audífonos Inalámbricos", 85.25, 40, "https://picsum.photos/id/1075/400/300"),
        Product("p5", "Botella de Agua", 22.00, 80, "https://picsum.photos/id/1025/400/300"),
        Product("p6", "Mochila Urbana", 75.00, 30, "https://picsum.photos/id/10/400/300"),
    ]
