import streamlit as st
from PIL import ImageDraw
from streamlit_drawable_canvas import st_canvas

from zone_checker.agents import UNREADABLE
from zone_checker.export import agents_to_frame, default_export_name, excel_bytes
from zone_checker.pdf_pages import DocumentLoadError, open_pdf
from zone_checker.zone_pipeline import ExtractionConfig, process_batch
from zone_checker.zones import (
    FieldKind,
    FormVariant,
    Rect,
    Zone,
    from_reference_space,
    new_zone_id,
    to_reference_space,
    zone_type_label,
    zones_for_page,
)

MIN_DRAWN_PX = 10
KIND_COLORS = {
    FieldKind.NAME: "#ef4444",
    FieldKind.FIRSTNAME: "#3b82f6",
    FieldKind.AMOUNT: "#22c55e",
}

st.set_page_config(page_title="Expense Form Zone Extractor", layout="wide")

st.title("Expense Form Zone Extractor")
st.markdown("""
1. Upload the scanned expense forms (**.pdf**)
2. Draw a rectangle around **NOM**, **PRENOM** and **MONTANT A PAYER** on the first file
3. Run the extraction and download the per-person totals as Excel
""")

if "zones" not in st.session_state:
    st.session_state.zones = []
if "canvas_rev" not in st.session_state:
    st.session_state.canvas_rev = 0


def draw_zones(img, zones, scale):
    img = img.copy()
    d = ImageDraw.Draw(img)
    for z in zones:
        r = from_reference_space(z.rect, scale)
        color = KIND_COLORS[z.kind]
        d.rectangle([r.x, r.y, r.right, r.bottom], outline=color, width=2)
        d.text((r.x, max(0, r.y - 12)), z.type_label, fill=color)
    return img


uploaded = st.file_uploader("PDF files", type=["pdf"], accept_multiple_files=True)

st.subheader("Settings")
c1, c2 = st.columns(2)
lang = c1.text_input("Language hint", value="fra")
enhance = c2.checkbox("Enhance rendered pages", value=True)

if not uploaded:
    st.info("Please upload at least one PDF first.")
    st.stop()

st.subheader("Zones")
first = uploaded[0]
try:
    doc = open_pdf(first.getvalue(), source=first.name)
except DocumentLoadError as e:
    st.error(str(e))
    st.stop()

tc1, tc2, tc3, tc4 = st.columns(4)
kind = tc1.selectbox("Field", list(FieldKind), format_func=lambda k: zone_type_label(k).split("-")[0])
variant = tc2.selectbox("Form", list(FormVariant), format_func=lambda v: v.value)
page = tc3.number_input("Page", min_value=1, max_value=doc.page_count, value=1, step=1)
scale = tc4.selectbox("Zoom", [1.0, 1.5, 2.0], index=1, format_func=lambda s: f"{int(s * 100)}%")

page_img = doc.render(int(page), scale=scale, enhance=enhance)
bg = draw_zones(page_img, zones_for_page(st.session_state.zones, int(page)), scale)

canvas_res = st_canvas(
    background_image=bg,
    drawing_mode="rect",
    key=f"canvas_{int(page)}_{scale}_{st.session_state.canvas_rev}",
    height=bg.height,
    width=bg.width,
    update_streamlit=True,
    stroke_color=KIND_COLORS[kind],
    fill_color="rgba(0, 0, 0, 0.05)",
    stroke_width=2,
)

b1, b2 = st.columns(2)
if b1.button("➕ Add drawn zone"):
    objs = (canvas_res.json_data or {}).get("objects", []) if canvas_res else []
    rects = [o for o in objs if o.get("type") == "rect"]
    if not rects:
        st.warning("Draw a rectangle on the page first.")
    else:
        o = rects[-1]
        w = float(o.get("width", 0)) * float(o.get("scaleX", 1))
        h = float(o.get("height", 0)) * float(o.get("scaleY", 1))
        if w > MIN_DRAWN_PX and h > MIN_DRAWN_PX:
            ref = to_reference_space(Rect(float(o.get("left", 0)), float(o.get("top", 0)), w, h), scale)
            st.session_state.zones.append(Zone(
                id=new_zone_id(st.session_state.zones),
                rect=ref,
                kind=kind,
                page=int(page),
                variant=variant,
                label=zone_type_label(kind, variant),
            ))
            st.session_state.canvas_rev += 1
            st.rerun()
        else:
            st.warning("Zone too small, draw a larger rectangle.")
if b2.button("🗑️ Clear all zones"):
    st.session_state.zones = []
    st.session_state.canvas_rev += 1
    st.rerun()

for z in list(st.session_state.zones):
    zc1, zc2 = st.columns([5, 1])
    r = z.rect
    zc1.write(f"**{z.type_label}** page {z.page}: x={r.x:.0f} y={r.y:.0f} w={r.width:.0f} h={r.height:.0f}")
    if zc2.button("Delete", key=f"del_{z.id}"):
        st.session_state.zones = [x for x in st.session_state.zones if x.id != z.id]
        st.session_state.canvas_rev += 1
        st.rerun()

doc.close()

st.subheader("Processing")
status = st.empty()
bar = st.progress(0)

if st.button("▶️ Process PDFs", disabled=not st.session_state.zones):
    def _progress(pct, msg):
        bar.progress(min(100, int(pct)))
        status.info(msg)

    result = process_batch(
        [(f.name, f.getvalue()) for f in uploaded],
        st.session_state.zones,
        config=ExtractionConfig(language=lang, enhance_image=enhance),
        on_progress=_progress,
    )
    for f in result.failures:
        st.error(f"{f.source}: {f.message}")
    st.session_state.agents = result.agents
    status.success(f"Done - {len(result.agents)} agent(s) found")

agents = st.session_state.get("agents") or []
if agents:
    st.subheader("Results")
    df = agents_to_frame(agents)
    st.dataframe(
        df.style.apply(
            lambda row: ["color: red" if UNREADABLE in str(row["OBSERVATIONS"]) else "" for _ in row],
            axis=1,
        ),
        use_container_width=True,
    )
    st.download_button(
        label="⬇️ Download Results (.xlsx)",
        data=excel_bytes(agents),
        file_name=default_export_name(),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
