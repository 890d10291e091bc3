import matplotlib

# Headless backend for plot tests; must be selected before pyplot is imported.
matplotlib.use("Agg")
