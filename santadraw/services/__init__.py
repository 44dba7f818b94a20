from santadraw.services.draw_flow import DrawFlowError, run_group_draw, validate_group_draw

__all__ = ["DrawFlowError", "run_group_draw", "validate_group_draw"]
