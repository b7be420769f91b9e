"""HTTP surface for name search and bulk publishing."""
