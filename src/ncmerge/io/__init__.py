"""Reading and writing netCDF files."""
