# Events emitted by AprilTag detection system


class TagEvents:
    TAGS_DETECTED = "apriltag.tags_detected"
    NO_TAGS = "apriltag.no_tags"
    DETECTION_ERROR = "apriltag.detection_error"
    POSE_ESTIMATED = "apriltag.pose_estimated"
    POSE_FAILED = "apriltag.pose_failed"
