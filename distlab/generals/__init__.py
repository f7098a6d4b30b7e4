"""Byzantine generals: the oral-messages general and a launcher to simulate or fork them."""