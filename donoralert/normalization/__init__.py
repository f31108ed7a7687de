"""Input normalizers applied before values reach the donor registry."""
