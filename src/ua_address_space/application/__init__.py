"""Application services operating on an AddressSpace."""
