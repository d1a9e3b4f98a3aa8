"""
iFire - Forest Fire Detection Dashboard (Streamlit application)
Upload images, detect fire and smoke by color analysis, and track hotspots on a map.
"""
from datetime import datetime

import numpy as np
import streamlit as st

from ifire.auxiliary import DetectionContext, YoloObjectDetector
from ifire.config import load_config
from ifire.errors import FireDetectionError, DetectorBusy, ModelNotReady
from ifire.fire_detector import FireDetector
from ifire.hotspots import (HotspotRegistry, RandomRegionResolver, demo_hotspots,
                            format_detection_time, hotspot_label, make_hotspot, parse_coordinates)
from ifire.image_handler import ImageUploadHandler
from ifire.logging_utils import get_logger, set_level
from ifire.models import DetectionResult, DetectionType
from ifire.report import build_report, report_filename, report_location_name
from ifire.risk_model import FireRiskModel
from ifire.runner import DetectionRunner, LatestResult
from ifire.visualization import DetectionVisualizer

logger = get_logger("ifire.app")

st.set_page_config(
    page_title="iFire Detection Dashboard",
    page_icon="🔥",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_config():
    config = load_config()
    set_level(config.log_level)
    return config


@st.cache_resource
def get_context() -> DetectionContext:
    """Models shared by every session, loaded once."""
    config = get_config()
    auxiliary = YoloObjectDetector(config.auxiliary_model) if config.auxiliary_enabled else None
    context = DetectionContext(auxiliary=auxiliary)
    context.load()
    return context


@st.cache_resource
def get_risk_model() -> FireRiskModel:
    model = FireRiskModel(random_state=42)
    model.train()
    return model


def get_runner() -> DetectionRunner:
    if 'runner' not in st.session_state:
        st.session_state.runner = DetectionRunner(FireDetector(get_config().detector), get_context())
    return st.session_state.runner


def get_registry() -> HotspotRegistry:
    if 'hotspots' not in st.session_state:
        st.session_state.hotspots = HotspotRegistry(demo_hotspots())
    return st.session_state.hotspots


def read_upload(uploaded_file):
    """Validate and decode an upload; reports problems in the UI and returns None."""
    is_valid, error_msg = ImageUploadHandler.validate_image(uploaded_file, get_config().max_upload_bytes)
    if not is_valid:
        st.error(f"❌ {error_msg}")
        return None
    try:
        return ImageUploadHandler.load_image(uploaded_file.getvalue())
    except FireDetectionError as e:
        st.error(f"❌ {e}")
        return None


def run_detection(image):
    try:
        with st.spinner("🔄 Analyzing image..."):
            return get_runner().detect(image)
    except DetectorBusy:
        st.warning("⏳ A detection is already running, please wait for it to finish")
    except FireDetectionError as e:
        logger.error("Detection failed: %s", e)
        st.error(f"❌ Detection failed: {e}")
    return None


def show_result(image, result: DetectionResult):
    """Render a detection result next to the annotated image."""
    if result.detection_type is DetectionType.FIRE:
        st.error(f"🔥 Fire detected ({result.confidence}% confidence)")
    elif result.detection_type is DetectionType.SMOKE:
        st.warning(f"💨 Smoke detected ({result.confidence}% confidence)")
    else:
        st.success(f"✅ No fire detected ({result.confidence}% confidence)")

    col_res1, col_res2, col_res3 = st.columns(3)
    with col_res1:
        st.metric("Affected area", result.affected_area)
    with col_res2:
        st.metric("Image quality", result.image_quality)
    with col_res3:
        st.metric("⏱️ Processing time", result.processing_time)

    if result.bounding_boxes:
        annotated = DetectionVisualizer().draw_detections(np.asarray(image.convert('RGB')), result.bounding_boxes)
        st.image(annotated, caption="Detection result", width='stretch')

    st.subheader("Recommendations")
    for line in result.recommendations:
        st.write(line)

    with st.expander("📋 Detection details"):
        st.write(f"**Detected objects:** {', '.join(result.detected_objects) or 'none'}")
        st.write(f"**Context labels:** {', '.join(result.context_labels) or 'none'}")
        st.json(result.to_dict())


def detection_page():
    st.title("🔥 Fire Detection")
    st.markdown("Upload an image to detect potential **fire** and **smoke** by color analysis.")

    col1, col2 = st.columns(2)
    image = None

    with col1:
        st.subheader("📤 Image upload")
        uploaded_file = st.file_uploader(
            "Choose an image",
            type=ImageUploadHandler.SUPPORTED_FORMATS,
            help="Images only, up to 10MB",
        )
        if uploaded_file is not None:
            image = read_upload(uploaded_file)
            if image is not None:
                info = ImageUploadHandler.get_image_info(image, uploaded_file.name, uploaded_file.size)
                st.success(f"✅ Uploaded: {uploaded_file.name}")
                with st.expander("📋 Image info"):
                    st.write(f"**Size:** {info['width']} × {info['height']}")
                    st.write(f"**Color mode:** {info['color_mode']}")
                    st.write(f"**File size:** {info['file_size'] / 1024 / 1024:.2f} MB")
                st.image(image, caption="Original image", width='stretch')

    with col2:
        st.subheader("🔍 Detection result")
        if image is None:
            st.info("👆 Upload an image to start detection")
            return
        if 'last_result' not in st.session_state:
            st.session_state.last_result = LatestResult()
        latest = st.session_state.last_result
        if st.button("Run detection", type="primary"):
            result = run_detection(image)
            if result is not None:
                latest.store(uploaded_file.file_id, result)
        result = latest.get(uploaded_file.file_id)
        if result is not None:
            show_result(image, result)


def dashboard_page():
    st.title("🌏 Fire Hotspots Dashboard")
    st.markdown("Monitoring of detected fire hotspots in Sumatra.")

    registry = get_registry()
    counts = registry.count_by_risk()

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total detections", len(registry))
    with col2:
        st.metric("High-risk areas", counts["High"])
    with col3:
        st.metric("Medium-risk areas", counts["Medium"])

    st.map(registry.map_points())

    with st.expander("➕ Add new hotspot", expanded=False):
        uploaded_file = st.file_uploader("Hotspot image", type=ImageUploadHandler.SUPPORTED_FORMATS,
                                         key="hotspot_upload")
        location = st.text_input("Location name", placeholder="e.g. Riau Province, Sumatra")
        lat_col, lon_col = st.columns(2)
        with lat_col:
            lat_text = st.text_input("Latitude (optional)")
        with lon_col:
            lon_text = st.text_input("Longitude (optional)")

        if st.button("Run detection and add"):
            if uploaded_file is None:
                st.error("Please upload an image first")
                return
            if not location.strip():
                st.error("Please enter a location name")
                return
            try:
                coordinates = parse_coordinates(lat_text, lon_text)
            except ValueError as e:
                st.error(f"Invalid coordinates: {e}")
                return
            image = read_upload(uploaded_file)
            if image is None:
                return
            result = run_detection(image)
            if result is None:
                return
            config = get_config()
            resolver = RandomRegionResolver(config.fallback_center, config.fallback_span)
            hotspot = registry.add(make_hotspot(result, location, coordinates, resolver,
                                                hotspot_id=registry.next_id()))
            st.success(f"Hotspot added: {result.detection_type.value} at {hotspot.location} "
                       f"with {result.confidence}% confidence")

    st.subheader("Hotspots")
    ids = [h.id for h in registry]
    if not ids:
        return
    labels = {h.id: hotspot_label(h) for h in registry}
    choice = st.selectbox("Select hotspot", ids, format_func=labels.get)
    selected = registry.select(choice)

    now = datetime.now()
    st.write(f"**Detection type:** {selected.detection_type.value if selected.detection_type else 'Unknown'}")
    st.write(f"**Risk level:** {selected.risk_level}")
    st.write(f"**Confidence:** {selected.confidence}%")
    st.write(f"**Detected:** {format_detection_time(selected.detected_at, now)}")
    st.write(f"**Coordinates:** {selected.latitude:.2f}, {selected.longitude:.2f}")

    st.download_button(
        label="📥 Download report",
        data=build_report(selected, registry.hotspots, now),
        file_name=report_filename(selected.location, now),
        mime="text/plain",
        help=f"Report for {report_location_name(selected.location)}",
    )


def risk_page():
    st.title("📈 Fire Risk Prediction")
    st.markdown("Estimate fire risk from weather and vegetation conditions with a small neural network.")

    temperature = st.slider("Temperature (°C)", 15, 45, 30)
    humidity = st.slider("Humidity (%)", 0, 100, 40)
    rainfall = st.slider("Rainfall (mm)", 0, 100, 15)
    vegetation = st.slider("Vegetation density (%)", 0, 100, 65)

    if st.button("Predict risk", type="primary"):
        try:
            with st.spinner("🔄 Training model..."):
                model = get_risk_model()
            prediction = model.predict_risk(temperature, humidity, rainfall, vegetation)
        except ModelNotReady as e:
            st.error(f"❌ {e}")
            return

        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Risk score", prediction.risk_score)
        with col2:
            st.metric("Risk level", prediction.risk_level)
        with col3:
            st.metric("Confidence", f"{prediction.confidence}% ± {prediction.uncertainty}")

        low, high = prediction.confidence_range
        st.write(f"**Likely range:** {low} to {high}")

        st.subheader("Feature importance")
        for name, share in prediction.feature_importance.items():
            st.progress(share / 100, text=f"{name.capitalize()}: {share}%")

        st.line_chart(model.loss_history)


def main():
    """Main application entry point."""
    with st.sidebar:
        st.header("🔥 iFire")
        page = st.radio("Navigate", ["Detection", "Dashboard", "Risk prediction"])

        with st.expander("🔧 System status"):
            context = get_context()
            if context.auxiliary is not None:
                st.success("✅ Object detector: loaded")
            else:
                st.warning("⚠️ Object detector unavailable, color analysis only")

    if page == "Detection":
        detection_page()
    elif page == "Dashboard":
        dashboard_page()
    else:
        risk_page()


if __name__ == "__main__":
    main()
