# RC rectangular section integration, N-M interaction and reinforcement design
from .geometry import SectionForces, SectionGeometry, StrainField
from .materials import ConcreteLaw, SteelLaw, concrete_from_grade, steel_from_grade
from .integration import (
    AnalyticalIntegrator, ConcreteIntegrator, IntegrationSettings, NumericalIntegrator
)
from .interaction import (
    DiagramPoint, InteractionDiagram, InteractionDiagramBuilder, build_interaction_diagram
)
from .reinforcement import DesignLoads, reinforcement_for_strain
from .design import CapacityDesignSolver, DesignResult, DesignStatus, SolverSettings
