"""EpiSim: agent-based epidemic simulation of a synthetic city.

A discrete-time, individual-based model coupling:
  - A repeating daily schedule of phases (sleep, work, leisure, ...)
  - Demographic-aware movement between dwellings, workplaces and
    leisure places, with random excursions
  - Pathogen transmission by direct contact and by environmental agents
  - One-way SEIR-style compartments with hospital-capacity-gated mortality
"""

__version__ = "0.1.0"
