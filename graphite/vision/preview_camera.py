# preview_camera.py
# Ручная проверка трекинга: python -m graphite.vision.preview_camera

import logging
import time

import cv2
import numpy as np

from graphite.vision.camera_service import CameraService
from graphite.vision.frame_data import INDEX_TIP, LEFT_EYE, RIGHT_EYE, TrackingFrame
from graphite.vision.gesture_detector import GestureDetector
from graphite.vision.smoother import InertiaSmoother

logger = logging.getLogger(__name__)

WINDOW = 'Graphite - Tracking Preview'


def _to_pixels(point, w, h):
    # Кадр для показа уже отзеркален
    return int((1.0 - point[0]) * w), int(point[1] * h)


def draw_overlay(image, frame: TrackingFrame, gesture, show_skeleton: bool):
    h, w = image.shape[:2]

    if show_skeleton and frame.hand_landmarks:
        for point in frame.hand_landmarks:
            cv2.circle(image, _to_pixels(point, w, h), 3, (0, 255, 0), -1)

    tip = frame.index_tip
    if tip is not None:
        x, y = _to_pixels(tip, w, h)
        cv2.circle(image, (x, y), 10, (0, 255, 255), -1)
        cv2.putText(image, f"({x}, {y})", (x + 15, y - 15),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2, cv2.LINE_AA)

    face = frame.face_landmarks
    if face and len(face) > max(LEFT_EYE, RIGHT_EYE):
        for idx in (LEFT_EYE, RIGHT_EYE):
            cv2.circle(image, _to_pixels(face[idx], w, h), 4, (255, 0, 255), -1)

    info_lines = [
        f"Gesture: {gesture}",
        f"FPS: {frame.fps:.1f}",
        f"Latency: {frame.latency_ms:.1f} ms",
        f"Skeleton: {'ON' if show_skeleton else 'OFF'}",
    ]
    y_offset = 30
    for line in info_lines:
        cv2.putText(image, line, (10, y_offset), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
        y_offset += 25


def main():
    logging.basicConfig(level=logging.INFO)
    show_skeleton = True

    camera = CameraService(camera_index=0)
    smoother = InertiaSmoother()
    detector = GestureDetector()
    rng = np.random.default_rng()

    cv2.namedWindow(WINDOW, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW, 800, 600)

    frame_count = 0
    start_time = time.perf_counter()
    try:
        while True:
            frame = camera.get_frame_data()
            if frame.raw_frame is None:
                logger.warning("Camera is not responding...")
                time.sleep(1)
                continue
            frame_count += 1

            gesture = None
            tip = frame.index_tip
            if tip is None:
                smoother.release()
            else:
                h, w = frame.raw_frame.shape[:2]
                state = smoother.update(InertiaSmoother.to_canvas(tip, w, h), 0.7, 0.0, rng)
                gesture = detector.detect(frame.hand_landmarks, state.velocity)

            display = frame.raw_frame.copy()
            draw_overlay(display, frame, gesture, show_skeleton)
            cv2.imshow(WINDOW, display)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord('s'):
                show_skeleton = not show_skeleton

            if frame_count % 30 == 0:
                logger.info("FPS: %.1f | Gesture: %s", frame.fps, gesture)
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    finally:
        camera.release()
        cv2.destroyAllWindows()
        elapsed = time.perf_counter() - start_time
        logger.info("%d frames in %.1f sec", frame_count, elapsed)


if __name__ == "__main__":
    main()
