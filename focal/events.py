class FocalEvents:
    """Focal pipeline event type constants"""

    FRAME_READY = "focal.frame_ready"
    TAG_REJECTED = "focal.tag_rejected"
    FOCAL_ESTIMATED = "focal.focal_estimated"
    DISTANCE_CHECKED = "focal.distance_checked"
