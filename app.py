"""
ScreenText Editor - Streamlit Main App
스크린샷 속 단어를 골라 배경을 복원하고 새 텍스트로 교체
"""
import streamlit as st

from screentext import (
    CONFIG,
    Compositor,
    ColorPick,
    OCREngine,
    SessionState,
    ScreenTextError,
    load_upload,
    setup_logging,
)

# 페이지 설정
st.set_page_config(
    layout="wide",
    page_title="ScreenText Editor",
    page_icon="🖼️"
)

FONT_FAMILIES = ["Arial", "Helvetica", "Times New Roman", "Courier New", "Verdana", "Georgia"]
ERASE_MODE_LABELS = {
    "perfect": "배경 자동 복원 (단색/그라데이션/텍스처)",
    "legacy": "주변 평균색 지우기",
    "white": "흰색 채우기",
}


# ==============================================================================
# 세션 상태 초기화
# ==============================================================================
def init_session_state():
    """세션 상태 초기화"""
    if 'logger' not in st.session_state:
        st.session_state.logger = setup_logging()

    if 'compositor' not in st.session_state:
        st.session_state.compositor = Compositor()

    defaults = {
        'uploaded_key': None,
        'new_text': "",
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def get_compositor() -> Compositor:
    return st.session_state.compositor


# ==============================================================================
# 업로드 + 인식
# ==============================================================================
def render_upload(compositor: Compositor):
    """이미지 업로드 및 OCR"""
    st.subheader("📤 이미지 업로드")

    uploaded_file = st.file_uploader(
        "스크린샷을 업로드하세요",
        type=['png', 'jpg', 'jpeg', 'gif', 'webp'],
        help=f"최대 {CONFIG['max_upload_bytes'] // (1024 * 1024)}MB"
    )
    if uploaded_file is None:
        return

    upload_key = (uploaded_file.name, uploaded_file.size)
    if st.session_state.uploaded_key == upload_key:
        return

    try:
        image = load_upload(uploaded_file.getvalue(), uploaded_file.type, uploaded_file.size)
    except ScreenTextError as e:
        st.error(f"❌ {e}")
        return

    compositor.load_image(image)
    st.session_state.uploaded_key = upload_key
    st.session_state.new_text = ""

    progress = st.progress(0.0, text="OCR 엔진 초기화 중...")

    def on_progress(status: str, fraction: float):
        progress.progress(fraction, text=f"Recognizing text... {int(fraction * 100)}% ({status})")

    try:
        result = compositor.recognize(OCREngine(), CONFIG["ocr_language"], on_progress)
    except ScreenTextError as e:
        st.error(f"❌ OCR 실패: {e}")
        return
    finally:
        progress.empty()

    detected = [w for w in result.words if len(w.text.strip()) > 1]
    st.success(f"✅ OCR 완료: {len(detected)}개 단어 인식")


# ==============================================================================
# 사이드바: 옵션
# ==============================================================================
def render_sidebar(compositor: Compositor):
    """사이드바 렌더링"""
    with st.sidebar:
        st.title("🖼️ ScreenText Editor")
        st.divider()

        options = compositor.options
        st.subheader("⚙️ 옵션")

        erase_mode = st.radio(
            "지우기 방식",
            list(ERASE_MODE_LABELS),
            index=list(ERASE_MODE_LABELS).index(options.erase_mode),
            format_func=ERASE_MODE_LABELS.get
        )
        font_family = st.selectbox(
            "폰트",
            FONT_FAMILIES,
            index=FONT_FAMILIES.index(options.font_family) if options.font_family in FONT_FAMILIES else 0
        )
        show_boxes = st.checkbox("인식 영역 표시", value=options.show_bounding_boxes)

        use_box = st.checkbox("텍스트 배경 박스", value=options.use_background_box)
        box_changes = {}
        if use_box:
            col_a, col_b = st.columns(2)
            with col_a:
                box_changes['background_box_padding_top'] = st.number_input("위", 0, 50, options.background_box_padding_top)
                box_changes['background_box_padding_left'] = st.number_input("왼쪽", 0, 50, options.background_box_padding_left)
            with col_b:
                box_changes['background_box_padding_bottom'] = st.number_input("아래", 0, 50, options.background_box_padding_bottom)
                box_changes['background_box_padding_right'] = st.number_input("오른쪽", 0, 50, options.background_box_padding_right)
            box_changes['background_box_color'] = st.color_picker("박스 색상", options.background_box_color)

        compositor.set_options(
            erase_mode=erase_mode,
            font_family=font_family,
            show_bounding_boxes=show_boxes,
            use_background_box=use_box,
            **box_changes
        )

        st.divider()
        st.subheader("🎨 글자색")
        if compositor.text_color:
            st.markdown(f"사용자 지정: `{compositor.text_color}`")
            if st.button("자동 감지로 되돌리기"):
                compositor.clear_text_color()
                st.rerun()
        else:
            st.caption("원래 글자색을 자동으로 감지합니다")

        current = compositor.text_color or "#000000"
        picked = st.color_picker("색상 직접 선택", current).upper()
        if compositor.text_color is None:
            # 자동 감지 중: 검정도 버튼으로 명시 지정
            if st.button("이 색상 사용"):
                compositor.set_text_color(picked)
                st.rerun()
        elif picked != current:
            compositor.set_text_color(picked)


# ==============================================================================
# 캔버스 + 좌표 입력
# ==============================================================================
def render_canvas(compositor: Compositor):
    """미리보기와 좌표 클릭 (선택 / 스포이트)"""
    preview = compositor.preview()
    if preview is None:
        st.info("이미지를 업로드하면 여기에 표시됩니다.")
        return

    h, w = preview.shape[:2]
    st.image(preview, caption=f"{w} x {h} px", use_container_width=True)

    with st.form("pointer_form"):
        col_x, col_y, col_mode = st.columns([1, 1, 1])
        with col_x:
            x = st.number_input("X", min_value=0, max_value=w - 1, value=0)
        with col_y:
            y = st.number_input("Y", min_value=0, max_value=h - 1, value=0)
        with col_mode:
            pick_color = st.checkbox("스포이트", value=compositor.eyedropper_active)

        if st.form_submit_button("📍 클릭", use_container_width=True):
            if pick_color != compositor.eyedropper_active:
                compositor.toggle_eyedropper()
            result = compositor.pointer_click(int(x), int(y))
            if isinstance(result, ColorPick):
                st.toast(f"Color Picked: {result.color}")
            elif result is not None:
                st.session_state.new_text = result.text
                st.toast(f'Selected: "{result.text}"')
            else:
                st.session_state.new_text = ""
            st.rerun()


# ==============================================================================
# 단어 목록 / 교체 / 기록
# ==============================================================================
def render_editor(compositor: Compositor):
    """단어 선택 및 교체"""
    if compositor.state is SessionState.RECOGNITION_FAILED:
        st.warning("⚠️ OCR에 실패했습니다. 새 이미지를 업로드하세요.")
        return

    words = compositor.registry.visible_words()
    if not words:
        return

    st.subheader(f"📝 인식된 단어 ({len(words)}개)")
    with st.container(height=240):
        for word in words:
            marker = "🟢" if word.is_selected else ("🔵" if word.is_edited else "🔴")
            label = f"{marker} {word.text}  ({word.confidence:.0f}%)"
            if st.button(label, key=f"word_{word.id}", use_container_width=True):
                compositor.select(word.id)
                st.session_state.new_text = word.text
                st.rerun()

    selected = compositor.registry.selected
    if selected is None:
        st.caption("교체할 단어를 선택하세요")
    else:
        b = selected.bbox
        st.caption(f"📍 위치: ({b.x0}, {b.y0}) - ({b.x1}, {b.y1})")
        new_text = st.text_input("새 텍스트", value=st.session_state.new_text)
        if st.button("✏️ 교체", type="primary"):
            try:
                entry = compositor.replace(selected.id, new_text)
            except ScreenTextError as e:
                st.error(f"❌ {e}")
            else:
                st.session_state.new_text = ""
                st.toast(f'Replaced "{entry.old_text}" with "{entry.new_text}"')
                st.rerun()

    if len(compositor.history):
        st.subheader("🕘 최근 교체")
        for entry in compositor.history:
            col_info, col_del = st.columns([4, 1])
            with col_info:
                st.text(f"{entry.old_text} → {entry.new_text}  ({entry.timestamp:%H:%M:%S})")
            with col_del:
                if st.button("✖", key=f"history_{entry.id}"):
                    compositor.remove_history_entry(entry.id)
                    st.rerun()


def render_actions(compositor: Compositor):
    if compositor.canvas is None:
        return

    col_dl, col_reset = st.columns(2)
    with col_dl:
        st.download_button(
            "📥 PNG 다운로드",
            data=compositor.export_png(),
            file_name="edited-screenshot.png",
            mime="image/png",
            use_container_width=True
        )
    with col_reset:
        if st.button("🔄 원본으로 되돌리기", use_container_width=True):
            compositor.reset()
            st.session_state.new_text = ""
            st.rerun()


# ==============================================================================
# 메인
# ==============================================================================
def main():
    init_session_state()
    compositor = get_compositor()
    render_sidebar(compositor)

    col_canvas, col_form = st.columns([2, 1])
    with col_form:
        render_upload(compositor)
        render_editor(compositor)
        render_actions(compositor)
    with col_canvas:
        render_canvas(compositor)


if __name__ == "__main__":
    main()
