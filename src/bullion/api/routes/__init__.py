"""HTTP route modules: public reads and authenticated writes."""
