"""dblp-masterfile: co-authorship masterfiles from the dblp knowledge graph."""

__version__ = "0.1.0"
