DEFAULT_CATEGORIES = [
    {"name": "Espresso", "description": "Rich, concentrated coffee shots", "position": 1},
    {"name": "Milk", "description": "Espresso with steamed milk and foam", "position": 2},
    {"name": "Iced", "description": "Chilled coffee over ice", "position": 3},
    {"name": "Seasonal", "description": "Limited-time holiday specials", "position": 4},
]

# keyed by category name; prices in minor units
DEFAULT_MENU_ITEMS = {
    "Espresso": [
        {"name": "Espresso", "description": "Rich, concentrated shot of coffee.", "price_cents": 6000},
        {"name": "Ristretto", "description": "Short, more intense espresso shot.", "price_cents": 6500},
        {"name": "Doppio", "description": "Double shot of espresso.", "price_cents": 7500},
        {"name": "Americano", "description": "Espresso diluted with hot water.", "price_cents": 6500},
        {"name": "Long Black", "description": "Hot water first, topped with espresso.", "price_cents": 6500},
        {"name": "Macchiato", "description": "Espresso topped with a small amount of foam.", "price_cents": 7000},
    ],
    "Milk": [
        {"name": "Latte", "description": "Espresso with steamed milk and light foam.", "price_cents": 8500},
        {"name": "Cappuccino", "description": "Equal parts espresso, steamed milk, foam.", "price_cents": 8500},
        {"name": "Flat White", "description": "Velvety microfoam over a double espresso.", "price_cents": 9000},
        {"name": "Mocha", "description": "Chocolate, steamed milk, espresso.", "price_cents": 9500},
        {"name": "Cortado", "description": "Equal parts espresso and warm milk.", "price_cents": 8000},
        {"name": "Vanilla Latte", "description": "Latte with vanilla syrup.", "price_cents": 9500},
        {"name": "Caramel Latte", "description": "Latte sweetened with caramel.", "price_cents": 10000},
        {"name": "Hazelnut Latte", "description": "Latte with hazelnut syrup.", "price_cents": 10000},
    ],
    "Iced": [
        {"name": "Iced Americano", "description": "Chilled espresso with cold water over ice.", "price_cents": 7000},
        {"name": "Iced Latte", "description": "Chilled espresso with milk over ice.", "price_cents": 9500},
        {"name": "Iced Mocha", "description": "Iced latte with chocolate.", "price_cents": 10500},
        {"name": "Iced Caramel Macchiato", "description": "Espresso, milk, vanilla, caramel drizzle.", "price_cents": 11500},
        {"name": "Nitro Cold Brew", "description": "Cold brew infused with nitrogen.", "price_cents": 12000},
        {"name": "Cold Brew", "description": "Slow steeped, smooth and refreshing.", "price_cents": 9500},
    ],
    "Seasonal": [
        {"name": "Pumpkin Spice Latte", "description": "Latte with pumpkin spice blend.", "price_cents": 11500},
        {"name": "Peppermint Mocha", "description": "Chocolate and peppermint with steamed milk.", "price_cents": 11500},
        {"name": "Gingerbread Latte", "description": "Warm spices with steamed milk.", "price_cents": 11500},
        {"name": "Eggnog Latte", "description": "Holiday classic with eggnog.", "price_cents": 12000},
        {"name": "Affogato", "description": "Vanilla gelato drowned in hot espresso.", "price_cents": 11000},
    ],
}
