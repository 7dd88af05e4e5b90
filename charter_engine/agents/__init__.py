# The AssignmentAgent sequences allocation, pricing and driver conflict checks
# for the auto-assignment sweep and the admin adjustment workflows.
from .assignment_agent import AssignmentAgent
