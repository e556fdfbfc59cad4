from plantlink.controllers.irrigation_panel import IrrigationPanel, PanelState

__all__ = ["IrrigationPanel", "PanelState"]
