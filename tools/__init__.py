# ============================================================================
# TOOLS MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Tool - Command line helpers
# PURPOSE: Operator scripts that talk to a running service
# CREATED: 18 OCT 2026
# ============================================================================
