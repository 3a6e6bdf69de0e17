"""Flask front end for the EMI plan calculator."""
