"""Stage generators for the proposal pipeline."""

# Note: Import layers individually to avoid circular imports
# Use: from app.layers.layer1_intake import IntakeGenerator
# Use: from app.layers.layer2_estimate import EstimateGenerator, ResearchGenerator
# Use: from app.layers.layer3_assets import EmailGenerator
# Use: from app.layers.layer4_execution import ExecutionGuideGenerator
# Use: from app.layers.layer5_pm import PMBreakdownGenerator
# Use: from app.layers.chat import ChatGenerator

__all__ = [
    "layer1_intake",
    "layer2_estimate",
    "layer3_assets",
    "layer4_execution",
    "layer5_pm",
    "chat",
]
