"""
Account settings: profile, profile photo, account photos, map preferences.
"""
import streamlit as st

st.set_page_config(page_title="アカウント設定", page_icon="👤", layout="wide")

from dataclasses import replace
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.api.fanout import fetch_all
from lapin_ops.config import config, ROLE_LABELS
from lapin_ops.data.loader import extract_list
from lapin_ops.metrics.expenses import to_data_url
from lapin_ops.ui.components import error_banner, empty_state, toast_result
from lapin_ops.ui.layout import page_setup, section_header

DEFAULT_PHOTO_MAX = 5


def render_profile(ctx, info: dict):
    section_header("プロフィール設定")
    avatar = info.get("avatar_url") or ctx.user.avatar_url
    if avatar:
        st.image(avatar, width=96)
    st.caption(ROLE_LABELS.get(ctx.user.role, ctx.user.role))

    with st.form("profile"):
        name = st.text_input("氏名", value=info.get("name") or ctx.user.name)
        email = st.text_input("メールアドレス", value=info.get("email") or ctx.user.email)
        if st.form_submit_button("保存", type="primary"):
            ctx.store.set_user(replace(ctx.user, name=name.strip() or ctx.user.name, email=email.strip()))
            st.toast("プロフィールを保存しました", icon="✅")

    upload = st.file_uploader("プロフィール写真", type=["jpg", "jpeg", "png"], key="profile_photo")
    if upload is not None and st.button("写真を更新", key="profile_photo_save"):
        result = ctx.api.upload_profile_photo(to_data_url(upload.getvalue(), upload.type or "image/jpeg"))
        toast_result(result, "プロフィール写真を更新しました", "アップロードに失敗しました")
        if result.success and result.get("avatar_url"):
            ctx.store.set_user(replace(ctx.user, avatar_url=result.get("avatar_url")))


def render_account_photos(api, result):
    section_header("アカウント写真")
    if not result.success:
        error_banner(result, "写真の取得に失敗しました")
        return
    photos = extract_list(result, "photos")
    limit = int(result.get("max") or DEFAULT_PHOTO_MAX)
    st.caption(f"{len(photos)} / {limit}枚")

    if not photos:
        empty_state("登録された写真はありません", icon="🖼️")
    cols = st.columns(4)
    for i, photo in enumerate(photos):
        with cols[i % 4]:
            if photo.get("url"):
                st.image(photo["url"], caption=photo.get("name") or None)
            if st.button("削除", key=f"account_photo_del_{photo.get('id')}"):
                deleted = api.delete_account_photo(str(photo.get("id")))
                toast_result(deleted, "削除しました", "削除に失敗しました")
                if deleted.success:
                    st.rerun()

    if len(photos) >= limit:
        st.info(f"写真は最大{limit}枚までです")
        return
    with st.form("account_photo", clear_on_submit=True):
        upload = st.file_uploader("写真を追加", type=["jpg", "jpeg", "png"])
        name = st.text_input("名前")
        if st.form_submit_button("アップロード") and upload is not None:
            created = api.upload_account_photo(to_data_url(upload.getvalue(), upload.type or "image/jpeg"), name)
            toast_result(created, "写真を追加しました", "アップロードに失敗しました")
            if created.success:
                st.rerun()


def render_map_settings(api, result):
    section_header("マップ設定", "顧客マップの初期表示位置")
    settings = result.data if result.success and isinstance(result.data, dict) else {}
    with st.form("map_settings"):
        c1, c2, c3 = st.columns(3)
        lat = c1.number_input("緯度", value=float(settings.get("center_lat") or config.map_center_lat), format="%.5f")
        lng = c2.number_input("経度", value=float(settings.get("center_lng") or config.map_center_lng), format="%.5f")
        zoom = c3.number_input("ズーム", min_value=1, max_value=18, value=int(settings.get("zoom") or config.map_zoom))
        if st.form_submit_button("保存"):
            saved = api.save_user_map_settings({"center_lat": lat, "center_lng": lng, "zoom": zoom})
            toast_result(saved, "マップ設定を保存しました", "保存に失敗しました")


def main():
    ctx = page_setup("アカウント設定")

    with st.spinner("読み込み中..."):
        results = fetch_all({
            "user": ctx.api.get_user_info,
            "photos": ctx.api.get_account_photos,
            "map": ctx.api.get_user_map_settings,
        })

    info = results["user"].get("user") or results["user"].data or {}
    if not isinstance(info, dict):
        info = {}

    left, right = st.columns(2)
    with left:
        render_profile(ctx, info)
        st.divider()
        render_map_settings(ctx.api, results["map"])
    with right:
        render_account_photos(ctx.api, results["photos"])


if __name__ == "__main__":
    main()
